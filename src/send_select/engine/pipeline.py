"""
Resolution pipeline.

Runs aggregate → resolve → classify → filter on in-memory frames. Nothing in
here touches the data store or the terminology file, so the whole engine is
a function of its inputs.
"""

import logging
from dataclasses import dataclass

import polars as pl

from send_select.engine.aggregate import aggregate_candidates
from send_select.engine.attributes import NOT_VALID_MSG, UNCERTAIN_MSG, AttributeDescriptor
from send_select.engine.classify import UncertaintyClassifier
from send_select.engine.filter import filter_records
from send_select.engine.resolve import resolve_values
from send_select.vocabulary import ReferenceVocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionOptions:
    """What the caller asked for."""

    targets: frozenset[str] = frozenset()
    include_uncertain: bool = False
    exclusively: bool = False
    match_all: bool = False
    report_uncertain_if_no_filter: bool = True

    @property
    def filtering(self) -> bool:
        return bool(self.targets)

    @property
    def msg_col(self) -> str | None:
        """Reason column to produce, if any."""
        if self.filtering and self.include_uncertain:
            return UNCERTAIN_MSG
        if not self.filtering and self.report_uncertain_if_no_filter:
            return NOT_VALID_MSG
        return None


def run_pipeline(
    attribute: AttributeDescriptor,
    subjects: pl.DataFrame,
    fine: pl.DataFrame,
    coarse: pl.DataFrame,
    options: SelectionOptions,
    vocabulary: ReferenceVocabulary | None = None,
) -> pl.DataFrame:
    """
    Resolve, classify and filter one attribute for a set of subjects.

    Args:
        attribute: Attribute to resolve
        subjects: Subject ids (attribute.keys columns)
        fine: Animal-level candidates (STUDYID, USUBJID, VALUE)
        coarse: Study-level candidates (STUDYID, VALUE)
        options: Filter targets and flags
        vocabulary: Codelist values; required when options.msg_col is set

    Returns:
        Frame with attribute.keys, the attribute column and options.msg_col
        (when requested)
    """
    msg_col = options.msg_col
    if msg_col and vocabulary is None:
        raise ValueError(f"A reference vocabulary is needed to fill {msg_col}")

    records = aggregate_candidates(subjects, fine, coarse, attribute.mode)
    records = resolve_values(records, attribute)
    logger.debug(
        "%s: %d subjects, %d resolved",
        attribute.name,
        records.height,
        records.get_column(attribute.name).is_not_null().sum(),
    )

    if msg_col:
        records = UncertaintyClassifier(attribute, vocabulary).classify(records, msg_col)

    if options.filtering:
        records = filter_records(
            records,
            attribute,
            options.targets,
            exclusively=options.exclusively,
            match_all=options.match_all,
            include_uncertain=options.include_uncertain,
            msg_col=msg_col,
        )

    columns = [*attribute.keys, attribute.name]
    if msg_col:
        columns.append(msg_col)
    return records.select(columns)
