"""
Set filtering of resolved records.

Steps, in order:
1. match: keep subjects whose resolved value is one of the targets
2. exclusively: drop studies that exhibit any resolved value outside the targets
3. match_all: keep studies exhibiting every target value (only for 2+ targets)
4. include_uncertain: add every subject carrying a reason, bypassing 2 and 3

Study-level checks work on plain ``{STUDYID: {values}}`` mappings.
"""

import logging
from collections import defaultdict

import polars as pl

from send_select.engine.attributes import STUDYID, AttributeDescriptor

logger = logging.getLogger(__name__)


def values_by_study(records: pl.DataFrame, value_col: str) -> dict[str, set[str]]:
    """Map each study to the set of upper-cased resolved values of its subjects."""
    exhibited: dict[str, set[str]] = defaultdict(set)
    for study, value in records.select([STUDYID, value_col]).iter_rows():
        if value is not None:
            exhibited[study].add(value.upper())
    return dict(exhibited)


def keep_studies(records: pl.DataFrame, studies: set[str]) -> pl.DataFrame:
    """Keep the rows of the given studies."""
    return records.join(
        pl.DataFrame({STUDYID: sorted(studies)}, schema={STUDYID: pl.String}),
        on=STUDYID,
        how="semi",
    )


def filter_records(
    records: pl.DataFrame,
    attribute: AttributeDescriptor,
    targets: frozenset[str],
    *,
    exclusively: bool = False,
    match_all: bool = False,
    include_uncertain: bool = False,
    msg_col: str | None = None,
) -> pl.DataFrame:
    """
    Filter resolved records by a target value set.

    Args:
        records: Resolved (and, for include_uncertain, classified) records
            of every subject in the caller's list
        attribute: Attribute whose column is filtered
        targets: Upper-cased target values, non-empty
        exclusively: Drop studies exhibiting values outside the targets
        match_all: Require studies to exhibit every target value
        include_uncertain: Add subjects carrying a reason in msg_col
        msg_col: Reason column, required with include_uncertain

    Returns:
        Subset of records, one row per subject
    """
    if not targets:
        raise ValueError("filter_records needs at least one target value")
    if include_uncertain and msg_col is None:
        raise ValueError("include_uncertain needs the reason column name")

    value_col = attribute.name
    found = records.filter(pl.col(value_col).str.to_uppercase().is_in(sorted(targets)))
    logger.debug("%s: %d subjects match %s", value_col, found.height, sorted(targets))

    if exclusively:
        # Exhibited values come from all subjects, not only the matched ones
        exhibited = values_by_study(records, value_col)
        matched_studies = set(found.get_column(STUDYID).unique().to_list())
        disqualified = {study for study in matched_studies if exhibited.get(study, set()) - targets}
        found = keep_studies(found, matched_studies - disqualified)
        logger.debug("%s: %d studies disqualified by other values", value_col, len(disqualified))

    if match_all and len(targets) > 1:
        present = values_by_study(found, value_col)
        complete = {study for study, values in present.items() if len(values & targets) == len(targets)}
        found = keep_studies(found, complete)
        logger.debug("%s: %d studies exhibit all target values", value_col, len(complete))

    if include_uncertain:
        keys = attribute.keys
        uncertain = records.filter(pl.col(msg_col).is_not_null())
        found = pl.concat(
            [uncertain, found.join(uncertain.select(keys), on=keys, how="anti")],
            how="vertical",
        )
        logger.debug("%s: %d uncertain subjects included", value_col, uncertain.height)

    return found
