"""
Uncertainty classification.

Explains why a subject has no trustworthy value. Conditions are checked in a
fixed order and all that apply are reported, joined by " & " and prefixed by
the attribute name:

1. unresolved: multiple animal-level values, multiple study-level values
   without an animal-level value, or no value at all
2. resolved, but not a value of the controlled terminology codelist
3. animal-level values that are not all among the study-level values
"""

from dataclasses import dataclass

import polars as pl

from send_select.engine.attributes import (
    COARSE_VALUES,
    FINE_VALUES,
    RESOLVED_FROM,
    AttributeDescriptor,
    Source,
)
from send_select.vocabulary import ReferenceVocabulary

CONDITION_SEPARATOR = " & "


@dataclass(frozen=True)
class UncertaintyClassifier:
    """Classify resolved records against a reference vocabulary."""

    attribute: AttributeDescriptor
    vocabulary: ReferenceVocabulary

    def reason(
        self,
        resolved: str | None,
        resolved_from: str | None,
        fine_values: list[str] | None,
        coarse_values: list[str] | None,
    ) -> str | None:
        """
        Build the reason text for one subject.

        Args:
            resolved: Resolved value, None when unresolved
            resolved_from: "fine" or "coarse" for resolved values
            fine_values: Distinct animal-level values (None if there are none)
            coarse_values: Distinct study-level values (None if there are none)

        Returns:
            Reason text, or None when the value is confidently decided
        """
        fine = fine_values or []
        coarse = coarse_values or []
        conditions = []

        if resolved is None:
            if len(fine) > 1:
                conditions.append(self.attribute.msg_multiple_fine())
            elif not fine and len(coarse) > 1:
                conditions.append(self.attribute.msg_multiple_coarse())
            elif not fine and not coarse:
                conditions.append(self.attribute.msg_missing())
        elif resolved not in self.vocabulary:
            conditions.append(self.attribute.msg_invalid(Source(resolved_from)))

        fine_keys = {value.upper() for value in fine}
        coarse_keys = {value.upper() for value in coarse}
        if fine_keys and coarse_keys and not fine_keys <= coarse_keys:
            conditions.append(self.attribute.msg_mismatch())

        if not conditions:
            return None
        return f"{self.attribute.name}: {CONDITION_SEPARATOR.join(conditions)}"

    def classify(self, records: pl.DataFrame, msg_col: str) -> pl.DataFrame:
        """
        Add a reason column to resolved records.

        Args:
            records: Output of resolve_values
            msg_col: Name of the reason column (UNCERTAIN_MSG or NOT_VALID_MSG)

        Returns:
            The records with msg_col added (null where no condition applies)
        """
        reasons = [
            self.reason(
                row[self.attribute.name],
                row[RESOLVED_FROM],
                row[FINE_VALUES],
                row[COARSE_VALUES],
            )
            for row in records.select(
                [self.attribute.name, RESOLVED_FROM, FINE_VALUES, COARSE_VALUES]
            ).iter_rows(named=True)
        ]
        return records.with_columns(pl.Series(msg_col, reasons, dtype=pl.String))
