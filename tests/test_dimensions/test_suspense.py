"""Tests for SuspenseScorer."""

from __future__ import annotations

import pytest

from prioritization.dimensions.suspense import SuspenseScorer
from prioritization.errors import InsufficientDataError
from prioritization.models import SuspenseFactors


@pytest.fixture
def scorer() -> SuspenseScorer:
    return SuspenseScorer()


class TestSuspenseScore:
    def test_tight_overtime_thriller(self, scorer) -> None:
        """One-point margin, five lead changes, late drama and overtime."""
        factors = SuspenseFactors(
            score_margin=1,
            lead_changes=5,
            late_drama=True,
            went_to_overtime=True,
            uncertainty_duration=90,
        )
        result = scorer.score(factors)
        assert result.value == pytest.approx(89.8)
        assert result.value >= 85

    def test_blowout_is_near_zero(self, scorer) -> None:
        factors = SuspenseFactors(
            score_margin=30,
            lead_changes=0,
            late_drama=False,
            went_to_overtime=False,
            uncertainty_duration=0,
        )
        assert scorer.score(factors).value == 0.0

    def test_lead_changes_capped(self, scorer) -> None:
        few = SuspenseFactors(score_margin=0, lead_changes=7)
        many = SuspenseFactors(score_margin=0, lead_changes=40)
        assert scorer.score(few).value == scorer.score(many).value

    def test_missing_fields_score_neutral(self, scorer) -> None:
        """Only the margin is known; everything else sits at 50."""
        result = scorer.score(SuspenseFactors(score_margin=0))
        assert result.value == pytest.approx(35 + 50 * 0.65)
        assert result.present == 1
        assert result.counted == 5

    def test_no_measurements_raises(self, scorer) -> None:
        with pytest.raises(InsufficientDataError):
            scorer.score(SuspenseFactors())

    def test_score_always_in_range(self, scorer) -> None:
        for margin in (0, 0.5, 3, 8, 100):
            value = scorer.score(SuspenseFactors(score_margin=margin)).value
            assert 0 <= value <= 100
