"""
Attribute descriptors.

An attribute (route of administration, study design, ...) is described once:
where its animal-level and study-level candidate values live, which CDISC
codelist validates it, and how uncertainty reasons are worded. The engine
stages read everything they need from the descriptor.
"""

from dataclasses import dataclass
from enum import Enum

# Identity and working columns shared by all stages
STUDYID = "STUDYID"
USUBJID = "USUBJID"
VALUE = "VALUE"
FINE_VALUES = "FINE_VALUES"
NUM_FINE = "NUM_FINE"
COARSE_VALUES = "COARSE_VALUES"
NUM_COARSE = "NUM_COARSE"
RESOLVED_FROM = "RESOLVED_FROM"

# Message columns
UNCERTAIN_MSG = "UNCERTAIN_MSG"
NOT_VALID_MSG = "NOT_VALID_MSG"
MSG_COLUMNS = (UNCERTAIN_MSG, NOT_VALID_MSG)


class ResolutionMode(Enum):
    """Granularity at which an attribute is recorded."""

    ENTITY_AND_GROUP_LEVEL = "entity_and_group_level"  # per animal and per study
    GROUP_LEVEL_ONLY = "group_level_only"  # per study only

    @property
    def has_entity_level(self) -> bool:
        return self is ResolutionMode.ENTITY_AND_GROUP_LEVEL

    @property
    def keys(self) -> list[str]:
        """Columns identifying one resolved record."""
        return [STUDYID, USUBJID] if self.has_entity_level else [STUDYID]


class Source(Enum):
    """Which level a resolved value was taken from."""

    FINE = "fine"
    COARSE = "coarse"


@dataclass(frozen=True)
class AttributeDescriptor:
    """An attribute with redundant animal-level and study-level recordings."""

    name: str  # output column, e.g. ROUTE
    mode: ResolutionMode
    ts_parmcd: str  # TS parameter holding the study-level value
    codelist: str  # CDISC CT codelist validating the value
    fine_domain: str | None = None  # e.g. EX
    fine_variable: str | None = None  # e.g. EXROUTE

    def __post_init__(self):
        if self.mode.has_entity_level and not (self.fine_domain and self.fine_variable):
            raise ValueError(f"{self.name}: entity-level attributes need a fine domain and variable")

    @property
    def keys(self) -> list[str]:
        return self.mode.keys

    @property
    def coarse_label(self) -> str:
        return f"TS parameter {self.ts_parmcd}"

    # Reason texts, see engine.classify

    def msg_multiple_fine(self) -> str:
        return f"Multiple values for {self.fine_variable} found"

    def msg_multiple_coarse(self) -> str:
        if self.mode.has_entity_level:
            return (
                f"Multiple TS parameters {self.ts_parmcd} found and "
                f"{self.fine_domain} rows with {self.fine_variable} values are missing"
            )
        return f"Multiple values for {self.coarse_label} found"

    def msg_missing(self) -> str:
        if self.mode.has_entity_level:
            return (
                f"TS parameter {self.ts_parmcd} and "
                f"{self.fine_domain} rows with {self.fine_variable} values are missing"
            )
        return f"{self.coarse_label} is missing"

    def msg_invalid(self, source: Source) -> str:
        label = self.fine_variable if source is Source.FINE else self.coarse_label
        return f"{label} does not contain a valid CT value"

    def msg_mismatch(self) -> str:
        return f"Mismatch in values of {self.coarse_label} and {self.fine_variable}"


ROUTE = AttributeDescriptor(
    name="ROUTE",
    mode=ResolutionMode.ENTITY_AND_GROUP_LEVEL,
    ts_parmcd="ROUTE",
    codelist="ROUTE",
    fine_domain="EX",
    fine_variable="EXROUTE",
)

SDESIGN = AttributeDescriptor(
    name="SDESIGN",
    mode=ResolutionMode.GROUP_LEVEL_ONLY,
    ts_parmcd="SDESIGN",
    codelist="DESIGN",
)
