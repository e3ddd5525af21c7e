"""
Attribute resolution engine.

Stages, each consuming only the previous stage's output:
- aggregate: candidate value sets per animal/study
- resolve: one value or unresolved
- classify: reason texts for untrustworthy values
- filter: target value sets with exclusively / match_all / uncertain rules
- merge: join back to the caller's table
"""

from send_select.engine.aggregate import aggregate_candidates, distinct_values
from send_select.engine.attributes import (
    ROUTE,
    SDESIGN,
    AttributeDescriptor,
    ResolutionMode,
)
from send_select.engine.classify import UncertaintyClassifier
from send_select.engine.filter import filter_records
from send_select.engine.merge import merge_results
from send_select.engine.pipeline import SelectionOptions, run_pipeline
from send_select.engine.resolve import resolve_values

__all__ = [
    "AttributeDescriptor",
    "ResolutionMode",
    "ROUTE",
    "SDESIGN",
    "aggregate_candidates",
    "distinct_values",
    "resolve_values",
    "UncertaintyClassifier",
    "filter_records",
    "merge_results",
    "SelectionOptions",
    "run_pipeline",
]
