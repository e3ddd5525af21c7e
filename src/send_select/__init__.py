"""
send_select: attribute resolution and filtering for pooled SEND data

Picks the route of administration per animal and the study design per study
from a pooled SEND data store, where the same attribute can be recorded at
animal level (e.g. EX.EXROUTE) and at study level (TS parameters):

    raw rows → aggregate → resolve → classify → filter → merge

Core constraints:
- Animal-level evidence always wins over study-level evidence
- Ambiguous or missing evidence is never guessed, it is reported
- Controlled terminology (CDISC CT) decides what counts as a valid value
"""

from send_select.api import (
    get_studies_sdesign,
    get_subj_route,
    resolve_and_filter_entity_attribute,
    resolve_group_attribute,
)
from send_select.engine.attributes import ROUTE, SDESIGN, AttributeDescriptor, ResolutionMode
from send_select.errors import InvalidInputError
from send_select.vocabulary import ReferenceVocabulary

__version__ = "0.1.0"

__all__ = [
    "get_subj_route",
    "get_studies_sdesign",
    "resolve_and_filter_entity_attribute",
    "resolve_group_attribute",
    "AttributeDescriptor",
    "ResolutionMode",
    "ROUTE",
    "SDESIGN",
    "InvalidInputError",
    "ReferenceVocabulary",
]
