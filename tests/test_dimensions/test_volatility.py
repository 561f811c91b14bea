"""Tests for VolatilityScorer."""

from __future__ import annotations

import pytest

from prioritization.dimensions.volatility import VolatilityScorer
from prioritization.errors import InsufficientDataError
from prioritization.models import VolatilityFactors


@pytest.fixture
def scorer() -> VolatilityScorer:
    return VolatilityScorer()


class TestVolatilityScore:
    def test_weighted_sum(self, scorer) -> None:
        factors = VolatilityFactors(
            momentum_swings=2, critical_moments=1, event_frequency=1.0, intensity_peaks=1
        )
        assert scorer.score(factors).value == pytest.approx(49.5)

    def test_missing_fields_contribute_half_cap(self, scorer) -> None:
        result = scorer.score(VolatilityFactors(momentum_swings=3))
        assert result.value == pytest.approx(67.5)
        assert result.present == 1

    def test_saturates_at_100(self, scorer) -> None:
        factors = VolatilityFactors(
            momentum_swings=50, critical_moments=50, event_frequency=50, intensity_peaks=50
        )
        assert scorer.score(factors).value == 100.0

    def test_calm_event_is_zero(self, scorer) -> None:
        factors = VolatilityFactors(
            momentum_swings=0, critical_moments=0, event_frequency=0, intensity_peaks=0
        )
        assert scorer.score(factors).value == 0.0

    def test_no_measurements_raises(self, scorer) -> None:
        with pytest.raises(InsufficientDataError):
            scorer.score(VolatilityFactors())
