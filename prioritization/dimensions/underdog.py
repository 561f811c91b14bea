"""Underdog: an asymmetry between competitors being corrected."""

from __future__ import annotations

from prioritization.dimensions.base import DimensionScorer, ensure_exhaustive
from prioritization.models import (
    EmotionalDimension,
    UnderdogFactors,
    UnderdogPerformance,
)

_PERFORMANCE_MULTIPLIER = ensure_exhaustive(
    {
        UnderdogPerformance.LOST_BADLY: 0.4,
        UnderdogPerformance.COMPETITIVE: 0.9,
        UnderdogPerformance.UPSET: 1.5,
        UnderdogPerformance.DOMINANT_UPSET: 1.8,
    },
    UnderdogPerformance,
)

# Ranking gaps below this are treated as an even matchup.
_EVEN_MATCHUP_GAP = 3.0
_EVEN_MATCHUP_BASE = 20.0

_RANKING = (3.0, 50.0)
_HISTORY = (2.0, 20.0)
_ODDS = (0.8, 30.0)


class UnderdogScorer(DimensionScorer):
    """Ranking-gap base, refined by odds and head-to-head history, scaled by
    how the underdog actually performed.

    Without odds the ranking + history sum (max 70) is rescaled to 100 so
    events without a betting market are not penalised.
    """

    dimension = EmotionalDimension.UNDERDOG
    counted_fields = (
        "ranking_differential",
        "historical_imbalance",
        "underdog_performance",
    )
    optional_fields = ("odds_differential",)

    def _compute(self, factors: UnderdogFactors) -> float:
        multiplier = (
            1.0
            if factors.underdog_performance is None
            else _PERFORMANCE_MULTIPLIER[factors.underdog_performance]
        )
        gap = factors.ranking_differential
        if gap is not None and gap < _EVEN_MATCHUP_GAP:
            return _EVEN_MATCHUP_BASE * multiplier

        ranking = _capped(gap, *_RANKING)
        history = _capped(factors.historical_imbalance, *_HISTORY)
        if factors.odds_differential is None:
            base = (ranking + history) * 100.0 / (_RANKING[1] + _HISTORY[1])
        else:
            base = ranking + history + _capped(factors.odds_differential, *_ODDS)
        return base * multiplier


def _capped(value: float | None, per_unit: float, cap: float) -> float:
    if value is None:
        return cap / 2
    return min(cap, value * per_unit)
