"""Volatility: how often hope and fear swapped places."""

from __future__ import annotations

from prioritization.dimensions.base import DimensionScorer
from prioritization.models import EmotionalDimension, VolatilityFactors

# (points per unit, cap) per sub-signal.  Caps sum to 100 so no single
# runaway input can carry the score on its own.
_SWINGS = (12.0, 35.0)
_CRITICAL_MOMENTS = (10.0, 30.0)
_EVENT_FREQUENCY = (7.5, 15.0)
_INTENSITY_PEAKS = (8.0, 20.0)


class VolatilityScorer(DimensionScorer):
    """Capped weighted sum of momentum swings, critical moments, event rate
    and intensity peaks.  A missing sub-signal contributes half its cap."""

    dimension = EmotionalDimension.VOLATILITY
    counted_fields = (
        "momentum_swings",
        "critical_moments",
        "event_frequency",
        "intensity_peaks",
    )

    def _compute(self, factors: VolatilityFactors) -> float:
        return (
            _capped(factors.momentum_swings, *_SWINGS)
            + _capped(factors.critical_moments, *_CRITICAL_MOMENTS)
            + _capped(factors.event_frequency, *_EVENT_FREQUENCY)
            + _capped(factors.intensity_peaks, *_INTENSITY_PEAKS)
        )


def _capped(value: float | None, per_unit: float, cap: float) -> float:
    if value is None:
        return cap / 2
    return min(cap, value * per_unit)
