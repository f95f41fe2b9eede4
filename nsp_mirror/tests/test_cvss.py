"""
Tests for CVSS vector parsing and scoring.

Expected scores are the values published by NVD for the same vectors.
"""
from decimal import Decimal

import pytest

from scoring.cvss import CvssScorer, SchemaVersion


@pytest.fixture
def scorer():
    return CvssScorer()


class TestCvssV2:

    def test_network_partial_impact(self, scorer):
        result = scorer.score("AV:N/AC:L/Au:N/C:P/I:P/A:P")

        assert result.schema_version is SchemaVersion.V2
        assert result.vector == "AV:N/AC:L/Au:N/C:P/I:P/A:P"
        assert result.base_score == Decimal("7.5")
        assert result.impact_subscore == Decimal("6.4")
        assert result.exploitability_subscore == Decimal("10.0")

    def test_complete_impact(self, scorer):
        result = scorer.score("AV:N/AC:L/Au:N/C:C/I:C/A:C")

        assert result.base_score == Decimal("10.0")
        assert result.impact_subscore == Decimal("10.0")

    def test_local_medium_complexity(self, scorer):
        result = scorer.score("AV:L/AC:M/Au:N/C:P/I:N/A:N")

        assert result.base_score == Decimal("1.9")
        assert result.impact_subscore == Decimal("2.9")
        assert result.exploitability_subscore == Decimal("3.4")

    def test_no_impact_scores_zero(self, scorer):
        assert scorer.score("AV:N/AC:L/Au:N/C:N/I:N/A:N").base_score == Decimal("0.0")

    def test_parenthesized_vector(self, scorer):
        result = scorer.score("(AV:N/AC:L/Au:N/C:P/I:P/A:P)")

        assert result.base_score == Decimal("7.5")

    def test_temporal_metrics_ignored(self, scorer):
        result = scorer.score("AV:N/AC:L/Au:N/C:P/I:P/A:P/E:F/RL:OF/RC:C")

        assert result.base_score == Decimal("7.5")


class TestCvssV3:

    def test_critical_v31(self, scorer):
        result = scorer.score("CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H")

        assert result.schema_version is SchemaVersion.V3
        assert result.base_score == Decimal("9.8")
        assert result.impact_subscore == Decimal("5.9")
        assert result.exploitability_subscore == Decimal("3.9")

    def test_availability_only_v30(self, scorer):
        result = scorer.score("CVSS:3.0/AV:N/AC:L/PR:N/UI:N/S:U/C:N/I:N/A:H")

        assert result.base_score == Decimal("7.5")
        assert result.impact_subscore == Decimal("3.6")
        assert result.exploitability_subscore == Decimal("3.9")

    def test_scope_changed(self, scorer):
        result = scorer.score("CVSS:3.1/AV:N/AC:L/PR:N/UI:R/S:C/C:L/I:L/A:N")

        assert result.base_score == Decimal("6.1")
        assert result.impact_subscore == Decimal("2.7")
        assert result.exploitability_subscore == Decimal("2.8")

    def test_scope_changed_low_privileges(self, scorer):
        result = scorer.score("CVSS:3.1/AV:N/AC:L/PR:L/UI:N/S:C/C:H/I:H/A:H")

        assert result.base_score == Decimal("9.9")

    def test_no_impact_scores_zero(self, scorer):
        result = scorer.score("CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:N/I:N/A:N")

        assert result.base_score == Decimal("0.0")


class TestUnscoredVectors:

    @pytest.mark.parametrize("vector", [None, "", "   "])
    def test_blank_vector(self, scorer, vector):
        assert scorer.score(vector) is None

    @pytest.mark.parametrize("vector", [
        "not a vector",
        "CVSS:4.0/AV:N/AC:L/AT:N/PR:N/UI:N/VC:H/VI:H/VA:H/SC:N/SI:N/SA:N",
        "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H",
        "CVSS:3.1/AV:X/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H",
        "CVSS:3.1/AV:N/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H",
        "AV:N/AC:L/Au:N/C:P/I:P",
        "AV:N/AC:L/Au:N/C:P/I:P/A:Q",
        "AV:N/AC:L/Au:N/C:P/I:P/A:P/ZZ:1",
    ])
    def test_unparseable_vector(self, scorer, vector, caplog):
        assert scorer.score(vector) is None
        assert "Unable to parse CVSS vector" in caplog.text
