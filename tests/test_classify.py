"""Tests for uncertainty classification."""

import pytest

from send_select.engine.attributes import ROUTE, SDESIGN
from send_select.engine.classify import UncertaintyClassifier


@pytest.fixture
def classifier(route_vocabulary):
    return UncertaintyClassifier(ROUTE, route_vocabulary)


class TestUnresolved:
    """Reasons for subjects without a value."""

    def test_multiple_fine(self, classifier):
        reason = classifier.reason(None, None, ["ORAL", "INTRAVENOUS"], ["ORAL", "INTRAVENOUS"])
        assert reason == "ROUTE: Multiple values for EXROUTE found"

    def test_multiple_coarse_without_fine(self, classifier):
        reason = classifier.reason(None, None, None, ["ORAL", "DERMAL"])
        assert reason == (
            "ROUTE: Multiple TS parameters ROUTE found and EX rows with EXROUTE values are missing"
        )

    def test_both_missing(self, classifier):
        reason = classifier.reason(None, None, None, None)
        assert reason == "ROUTE: TS parameter ROUTE and EX rows with EXROUTE values are missing"

    def test_multiple_fine_with_mismatch(self, classifier):
        """The mismatch check also applies to unresolved subjects."""
        reason = classifier.reason(None, None, ["ORAL", "DERMAL"], ["ORAL"])
        assert reason == (
            "ROUTE: Multiple values for EXROUTE found & Mismatch in values of TS parameter ROUTE and EXROUTE"
        )


class TestResolved:
    """Reasons for subjects with a value."""

    def test_clean_fine_value(self, classifier):
        assert classifier.reason("ORAL", "fine", ["ORAL"], None) is None

    def test_clean_coarse_value(self, classifier):
        assert classifier.reason("ORAL", "coarse", None, ["ORAL"]) is None

    def test_fine_subset_of_coarse(self, classifier):
        assert classifier.reason("ORAL", "fine", ["ORAL"], ["ORAL", "DERMAL"]) is None

    def test_vocabulary_is_case_insensitive(self, classifier):
        assert classifier.reason("oral gavage", "fine", ["oral gavage"], None) is None

    def test_invalid_fine_value(self, classifier):
        reason = classifier.reason("BY MOUTH", "fine", ["BY MOUTH"], None)
        assert reason == "ROUTE: EXROUTE does not contain a valid CT value"

    def test_invalid_coarse_value(self, classifier):
        reason = classifier.reason("BY MOUTH", "coarse", None, ["BY MOUTH"])
        assert reason == "ROUTE: TS parameter ROUTE does not contain a valid CT value"

    def test_invalid_and_mismatch(self, classifier):
        reason = classifier.reason("BY MOUTH", "fine", ["BY MOUTH"], ["ORAL"])
        assert reason == (
            "ROUTE: EXROUTE does not contain a valid CT value"
            " & Mismatch in values of TS parameter ROUTE and EXROUTE"
        )

    def test_mismatch_is_case_insensitive(self, classifier):
        assert classifier.reason("oral", "fine", ["oral"], ["ORAL"]) is None


class TestGroupLevel:
    """Wording for attributes recorded per study only."""

    @pytest.fixture
    def classifier(self, design_vocabulary):
        return UncertaintyClassifier(SDESIGN, design_vocabulary)

    def test_missing(self, classifier):
        assert classifier.reason(None, None, None, None) == "SDESIGN: TS parameter SDESIGN is missing"

    def test_multiple(self, classifier):
        assert classifier.reason(None, None, None, ["PARALLEL", "CROSSOVER"]) == (
            "SDESIGN: Multiple values for TS parameter SDESIGN found"
        )

    def test_invalid(self, classifier):
        assert classifier.reason("NOT A DESIGN", "coarse", None, ["NOT A DESIGN"]) == (
            "SDESIGN: TS parameter SDESIGN does not contain a valid CT value"
        )
