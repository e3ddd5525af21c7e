"""
Attribute resolution.

Precedence, first match wins:
1. exactly one animal-level value       → that value
2. no animal-level value, one study value → the study value
3. anything else                         → unresolved (null)
"""

import polars as pl

from send_select.engine.attributes import (
    COARSE_VALUES,
    FINE_VALUES,
    NUM_COARSE,
    NUM_FINE,
    RESOLVED_FROM,
    AttributeDescriptor,
    Source,
)


def resolve_values(candidates: pl.DataFrame, attribute: AttributeDescriptor) -> pl.DataFrame:
    """
    Pick one value per subject or leave it unresolved.

    Args:
        candidates: Output of aggregate_candidates
        attribute: Attribute being resolved; its mode decides whether the
            animal-level branch is reachable

    Returns:
        The candidates with the attribute column (e.g. ROUTE) and RESOLVED_FROM
        ("fine" / "coarse" / null) added
    """
    single_coarse = (pl.col(NUM_FINE) == 0) & (pl.col(NUM_COARSE) == 1)

    if attribute.mode.has_entity_level:
        value = (
            pl.when(pl.col(NUM_FINE) == 1).then(pl.col(FINE_VALUES).list.first())
            .when(single_coarse).then(pl.col(COARSE_VALUES).list.first())
            .otherwise(pl.lit(None, dtype=pl.String))
        )
        source = (
            pl.when(pl.col(NUM_FINE) == 1).then(pl.lit(Source.FINE.value))
            .when(single_coarse).then(pl.lit(Source.COARSE.value))
            .otherwise(pl.lit(None, dtype=pl.String))
        )
    else:
        value = (
            pl.when(single_coarse).then(pl.col(COARSE_VALUES).list.first())
            .otherwise(pl.lit(None, dtype=pl.String))
        )
        source = (
            pl.when(single_coarse).then(pl.lit(Source.COARSE.value))
            .otherwise(pl.lit(None, dtype=pl.String))
        )

    return candidates.with_columns([
        value.alias(attribute.name),
        source.alias(RESOLVED_FROM),
    ])
