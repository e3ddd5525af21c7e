"""
Candidate aggregation.

Collapses raw candidate rows into one row per animal (or study) holding the
distinct animal-level values, the distinct study-level values of its study,
and their counts.
"""

import polars as pl

from send_select.engine.attributes import (
    COARSE_VALUES,
    FINE_VALUES,
    NUM_COARSE,
    NUM_FINE,
    STUDYID,
    USUBJID,
    VALUE,
    ResolutionMode,
)

_VALUE_KEY = "_VALUE_KEY"


def distinct_values(rows: pl.DataFrame, keys: list[str]) -> pl.DataFrame:
    """
    Reduce candidate rows to distinct non-empty values per key.

    Values are trimmed, empty strings count as absent and duplicates are
    detected case-insensitively (the first spelling seen is kept).

    Args:
        rows: Candidate rows with the key columns and VALUE
        keys: Columns to group by

    Returns:
        Frame with the key columns and VALUE, one row per distinct value
    """
    return (
        rows
        .select([
            *(pl.col(key).cast(pl.String) for key in keys),
            pl.col(VALUE).cast(pl.String).str.strip_chars(),
        ])
        .filter(pl.col(VALUE).is_not_null() & (pl.col(VALUE) != ""))
        .with_columns(pl.col(VALUE).str.to_uppercase().alias(_VALUE_KEY))
        .unique(subset=[*keys, _VALUE_KEY], keep="first", maintain_order=True)
        .drop(_VALUE_KEY)
    )


def aggregate_candidates(
    subjects: pl.DataFrame,
    fine: pl.DataFrame,
    coarse: pl.DataFrame,
    mode: ResolutionMode,
) -> pl.DataFrame:
    """
    Attach candidate value sets and counts to every subject.

    Args:
        subjects: Animals (STUDYID, USUBJID) or studies (STUDYID) to resolve
        fine: Animal-level rows (STUDYID, USUBJID, VALUE); ignored for group-level attributes
        coarse: Study-level rows (STUDYID, VALUE), broadcast to every animal of the study
        mode: Granularity of the attribute

    Returns:
        One row per distinct subject with FINE_VALUES, NUM_FINE, COARSE_VALUES
        and NUM_COARSE. Value lists are null when nothing was found; counts are 0.
    """
    keys = mode.keys
    candidates = subjects.select(pl.col(keys).cast(pl.String)).unique(maintain_order=True)

    coarse_sets = (
        distinct_values(coarse, [STUDYID])
        .group_by(STUDYID, maintain_order=True)
        .agg(pl.col(VALUE).alias(COARSE_VALUES))
    )
    candidates = candidates.join(coarse_sets, on=STUDYID, how="left")

    if mode.has_entity_level:
        fine_sets = (
            distinct_values(fine, [STUDYID, USUBJID])
            .group_by([STUDYID, USUBJID], maintain_order=True)
            .agg(pl.col(VALUE).alias(FINE_VALUES))
        )
        candidates = candidates.join(fine_sets, on=[STUDYID, USUBJID], how="left")
    else:
        candidates = candidates.with_columns(
            pl.lit(None, dtype=pl.List(pl.String)).alias(FINE_VALUES)
        )

    return candidates.with_columns([
        pl.col(FINE_VALUES).list.len().fill_null(0).cast(pl.Int64).alias(NUM_FINE),
        pl.col(COARSE_VALUES).list.len().fill_null(0).cast(pl.Int64).alias(NUM_COARSE),
    ]).select([*keys, FINE_VALUES, NUM_FINE, COARSE_VALUES, NUM_COARSE])
