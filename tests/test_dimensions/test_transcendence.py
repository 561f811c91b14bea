"""Tests for TranscendenceScorer."""

from __future__ import annotations

import pytest

from prioritization.dimensions.transcendence import TranscendenceScorer
from prioritization.errors import InsufficientDataError
from prioritization.models import TranscendenceFactors


@pytest.fixture
def scorer() -> TranscendenceScorer:
    return TranscendenceScorer()


class TestTranscendenceScore:
    def test_all_strong_signals(self, scorer) -> None:
        factors = TranscendenceFactors(
            historic_moment=True,
            community_buzz="viral",
            media_recognition="historic",
            records_broken=["a", "b", "c"],
            standout_performances=["x", "y", "z"],
        )
        assert scorer.score(factors).value == 100.0

    def test_weak_signals_are_damped(self, scorer) -> None:
        factors = TranscendenceFactors(
            historic_moment=False,
            community_buzz="moderate",
            media_recognition="none",
            records_broken=[],
            standout_performances=[],
        )
        assert scorer.score(factors).value == pytest.approx(6.1)

    def test_two_strong_signals_are_unscaled(self, scorer) -> None:
        factors = TranscendenceFactors(historic_moment=True, community_buzz="high")
        result = scorer.score(factors)
        assert result.value == pytest.approx(66.25, abs=0.1)
        assert result.present == 2

    def test_unmeasured_fields_never_count_as_strong(self, scorer) -> None:
        """Three neutral fields would otherwise lift the multiplier."""
        result = scorer.score(TranscendenceFactors(historic_moment=False))
        assert result.value == pytest.approx((0 + 50 * 0.75) * 0.7, abs=0.1)

    def test_no_measurements_raises(self, scorer) -> None:
        with pytest.raises(InsufficientDataError):
            scorer.score(TranscendenceFactors())
