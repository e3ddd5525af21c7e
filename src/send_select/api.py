"""
Caller-facing selection operations.

- resolve_and_filter_entity_attribute: per animal (e.g. route of administration)
- resolve_group_attribute: per study (e.g. study design)
- get_subj_route / get_studies_sdesign: the same bound to ROUTE / SDESIGN

All inputs are validated before the data store is queried. The terminology
file is only read when a message column is produced and no vocabulary was
passed in.
"""

import dataclasses
import logging
from collections.abc import Iterable

import polars as pl

from send_select.engine.attributes import (
    ROUTE,
    SDESIGN,
    STUDYID,
    USUBJID,
    AttributeDescriptor,
    ResolutionMode,
)
from send_select.engine.merge import merge_results
from send_select.engine.pipeline import SelectionOptions, run_pipeline
from send_select.errors import InvalidInputError
from send_select.results import prepare_final_results
from send_select.sources import fetch_coarse_observations, fetch_fine_observations, fetch_study_ids
from send_select.vocabulary import ReferenceVocabulary, lookup_reference_values

logger = logging.getLogger(__name__)

TargetValues = str | Iterable[str] | None


def normalize_targets(target_values: TargetValues) -> frozenset[str]:
    """
    Turn a filter argument into a set of upper-cased values.

    None, empty strings and empty collections all mean "no filter".
    """
    if target_values is None:
        return frozenset()
    if isinstance(target_values, str):
        target_values = [target_values]
    try:
        values = list(target_values)
    except TypeError as exc:
        raise InvalidInputError(f"Filter values must be a string or a list of strings, got {target_values!r}") from exc
    for value in values:
        if value is not None and not isinstance(value, str):
            raise InvalidInputError(f"Filter values must be strings, got {value!r}")
    return frozenset(value.strip().upper() for value in values if value and value.strip())


def require_bool(**flags: object) -> None:
    """Fail if any flag is not a real bool."""
    for name, value in flags.items():
        if not isinstance(value, bool):
            raise InvalidInputError(f"Parameter {name} must be either True or False, got {value!r}")


def require_table(table: object, columns: list[str], name: str) -> pl.DataFrame:
    """Fail unless the input is a polars DataFrame with non-null id columns."""
    if not isinstance(table, pl.DataFrame):
        raise InvalidInputError(f"Input parameter {name} must be a polars DataFrame, got {type(table).__name__}")
    missing = [col for col in columns if col not in table.columns]
    if missing:
        raise InvalidInputError(f"Input parameter {name} must contain column(s) {', '.join(missing)}")
    for col in columns:
        nulls = table.get_column(col).null_count()
        if nulls:
            raise InvalidInputError(f"Input parameter {name} has {nulls} row(s) with a null {col}")
    return table


def string_ids(table: pl.DataFrame, columns: list[str]) -> pl.DataFrame:
    """Cast id columns to strings, the key type used by the engine and the data store."""
    return table.with_columns(pl.col(columns).cast(pl.String))


def restore_ids(frame: pl.DataFrame, original: pl.DataFrame, columns: list[str]) -> pl.DataFrame:
    """Cast id columns back to the caller's dtypes."""
    return frame.with_columns([pl.col(col).cast(original.schema[col]) for col in columns])


def _vocabulary_for(
    attribute: AttributeDescriptor,
    options: SelectionOptions,
    vocabulary: ReferenceVocabulary | None,
) -> ReferenceVocabulary | None:
    if options.msg_col is None or vocabulary is not None:
        return vocabulary
    return lookup_reference_values(attribute.codelist)


def resolve_and_filter_entity_attribute(
    attribute: AttributeDescriptor,
    entity_list: pl.DataFrame,
    target_values: TargetValues = None,
    include_uncertain: bool = False,
    exclusively: bool = False,
    match_all: bool = False,
    report_uncertain_if_no_filter: bool = True,
    vocabulary: ReferenceVocabulary | None = None,
) -> pl.DataFrame:
    """
    Resolve an animal-level attribute and optionally filter animals by it.

    Args:
        attribute: Attribute recorded per animal and per study (e.g. ROUTE)
        entity_list: Animals to process, must contain STUDYID and USUBJID;
            extra columns are kept
        target_values: Value(s) to filter for, case-insensitive; empty means no filter
        include_uncertain: Also return animals whose value cannot be
            confidently decided, with the reason in UNCERTAIN_MSG
        exclusively: Only keep animals of studies exhibiting no other values
        match_all: Only keep animals of studies exhibiting every target value
        report_uncertain_if_no_filter: Without a filter, add the reason in NOT_VALID_MSG
        vocabulary: Valid codelist values; read from the CT file when omitted

    Returns:
        Input columns (id dtypes unchanged) plus the attribute column and, when requested,
        UNCERTAIN_MSG (filtering) or NOT_VALID_MSG (no filtering)
    """
    if not attribute.mode.has_entity_level:
        raise InvalidInputError(f"{attribute.name} is not recorded per animal, use resolve_group_attribute")
    caller_list = require_table(entity_list, [STUDYID, USUBJID], "entity_list")
    entity_list = string_ids(caller_list, [STUDYID, USUBJID])
    require_bool(
        include_uncertain=include_uncertain,
        exclusively=exclusively,
        match_all=match_all,
        report_uncertain_if_no_filter=report_uncertain_if_no_filter,
    )
    options = SelectionOptions(
        targets=normalize_targets(target_values),
        include_uncertain=include_uncertain,
        exclusively=exclusively,
        match_all=match_all,
        report_uncertain_if_no_filter=report_uncertain_if_no_filter,
    )

    study_ids = entity_list.get_column(STUDYID).unique().to_list()
    fine = fetch_fine_observations(attribute, study_ids)
    coarse = fetch_coarse_observations(attribute, study_ids)
    vocabulary = _vocabulary_for(attribute, options, vocabulary)

    results = run_pipeline(attribute, entity_list, fine, coarse, options, vocabulary)
    found = merge_results(entity_list, results, attribute.keys, attribute.name, options.msg_col)
    logger.info("%s: %d of %d animals selected", attribute.name, found.height, entity_list.height)
    found = prepare_final_results(found, entity_list.columns, [attribute.name])
    return restore_ids(found, caller_list, [STUDYID, USUBJID])


def resolve_group_attribute(
    attribute: AttributeDescriptor,
    group_list: pl.DataFrame | None = None,
    target_values: TargetValues = None,
    exclusively: bool = True,
    include_uncertain: bool = False,
    report_uncertain_if_no_filter: bool = True,
    vocabulary: ReferenceVocabulary | None = None,
) -> pl.DataFrame:
    """
    Resolve a study-level attribute and optionally filter studies by it.

    Attributes also recorded per animal are resolved from their study-level
    values only.

    Args:
        attribute: Attribute to resolve (e.g. SDESIGN)
        group_list: Studies to process, must contain STUDYID; extra columns
            are kept. None means every study in TS.
        target_values: Value(s) to filter for, case-insensitive; empty means no filter
        exclusively: Only keep studies exhibiting no other values
        include_uncertain: Also return studies whose value cannot be
            confidently decided, with the reason in UNCERTAIN_MSG
        report_uncertain_if_no_filter: Without a filter, add the reason in NOT_VALID_MSG
        vocabulary: Valid codelist values; read from the CT file when omitted

    Returns:
        Input columns (id dtype unchanged, or STUDYID) plus the attribute column and, when
        requested, UNCERTAIN_MSG or NOT_VALID_MSG
    """
    if attribute.mode.has_entity_level:
        attribute = dataclasses.replace(attribute, mode=ResolutionMode.GROUP_LEVEL_ONLY)
    caller_list = group_list
    if group_list is not None:
        caller_list = require_table(group_list, [STUDYID], "group_list")
        group_list = string_ids(caller_list, [STUDYID])
    require_bool(
        exclusively=exclusively,
        include_uncertain=include_uncertain,
        report_uncertain_if_no_filter=report_uncertain_if_no_filter,
    )
    options = SelectionOptions(
        targets=normalize_targets(target_values),
        include_uncertain=include_uncertain,
        exclusively=exclusively,
        report_uncertain_if_no_filter=report_uncertain_if_no_filter,
    )

    if group_list is None:
        studies = pl.DataFrame({STUDYID: fetch_study_ids()}, schema={STUDYID: pl.String})
        coarse = fetch_coarse_observations(attribute)
        original_columns: list[str] = []
    else:
        studies = group_list.select(STUDYID).unique(maintain_order=True)
        coarse = fetch_coarse_observations(attribute, studies.get_column(STUDYID).to_list())
        original_columns = group_list.columns
    fine = fetch_fine_observations(attribute, [])
    vocabulary = _vocabulary_for(attribute, options, vocabulary)

    results = run_pipeline(attribute, studies, fine, coarse, options, vocabulary)
    found = results if group_list is None else merge_results(
        group_list, results, attribute.keys, attribute.name, options.msg_col
    )
    logger.info("%s: %d of %d studies selected", attribute.name, results.height, studies.height)
    found = prepare_final_results(found, original_columns, [STUDYID, attribute.name])
    return found if caller_list is None else restore_ids(found, caller_list, [STUDYID])


def get_subj_route(
    animal_list: pl.DataFrame,
    route_filter: TargetValues = None,
    include_uncertain: bool = False,
    exclusively: bool = False,
    match_all: bool = False,
    no_filter_report_uncertain: bool = True,
    vocabulary: ReferenceVocabulary | None = None,
) -> pl.DataFrame:
    """
    Add the route of administration per animal, or select animals by route.

    The route is taken from a single non-empty EXROUTE value of the animal,
    else from a single TS parameter ROUTE value of the study.

    Examples:
        # Oral or oral gavage animals plus the uncertain ones
        get_subj_route(animals, ["ORAL", "ORAL GAVAGE"], include_uncertain=True)
        # Subcutaneous animals from studies without other routes
        get_subj_route(animals, "subcutaneous", exclusively=True)
    """
    return resolve_and_filter_entity_attribute(
        ROUTE,
        animal_list,
        target_values=route_filter,
        include_uncertain=include_uncertain,
        exclusively=exclusively,
        match_all=match_all,
        report_uncertain_if_no_filter=no_filter_report_uncertain,
        vocabulary=vocabulary,
    )


def get_studies_sdesign(
    study_list: pl.DataFrame | None = None,
    study_design_filter: TargetValues = None,
    exclusively: bool = True,
    include_uncertain: bool = False,
    no_filter_report_uncertain: bool = True,
    vocabulary: ReferenceVocabulary | None = None,
) -> pl.DataFrame:
    """Add the study design (TS parameter SDESIGN) per study, or select studies by design."""
    return resolve_group_attribute(
        SDESIGN,
        study_list,
        target_values=study_design_filter,
        exclusively=exclusively,
        include_uncertain=include_uncertain,
        report_uncertain_if_no_filter=no_filter_report_uncertain,
        vocabulary=vocabulary,
    )
