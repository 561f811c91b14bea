"""Suspense: how uncertain the outcome stayed."""

from __future__ import annotations

from prioritization.dimensions.base import NEUTRAL, DimensionScorer
from prioritization.models import EmotionalDimension, SuspenseFactors

_WEIGHT_MARGIN = 0.35
_WEIGHT_LEAD_CHANGES = 0.20
_WEIGHT_LATE_DRAMA = 0.20
_WEIGHT_OVERTIME = 0.15
_WEIGHT_UNCERTAINTY = 0.10

_POINTS_LOST_PER_MARGIN_UNIT = 12.0
_POINTS_PER_LEAD_CHANGE = 15.0


class SuspenseScorer(DimensionScorer):
    """Weighted combination of five normalised sub-signals.

    ====================  ===============================  ======
    Sub-signal            Normalisation                    Weight
    ====================  ===============================  ======
    Score margin          ``max(0, 100 - 12 × margin)``    0.35
    Lead changes          ``min(100, 15 × n)``             0.20
    Late drama            100 if true, else 0              0.20
    Overtime              100 if true, else 0              0.15
    Uncertainty duration  percentage, as-is                0.10
    ====================  ===============================  ======
    """

    dimension = EmotionalDimension.SUSPENSE
    counted_fields = (
        "score_margin",
        "lead_changes",
        "late_drama",
        "went_to_overtime",
        "uncertainty_duration",
    )

    def _compute(self, factors: SuspenseFactors) -> float:
        margin = (
            NEUTRAL
            if factors.score_margin is None
            else max(0.0, 100.0 - factors.score_margin * _POINTS_LOST_PER_MARGIN_UNIT)
        )
        lead_changes = (
            NEUTRAL
            if factors.lead_changes is None
            else min(100.0, factors.lead_changes * _POINTS_PER_LEAD_CHANGE)
        )
        late_drama = _flag(factors.late_drama)
        overtime = _flag(factors.went_to_overtime)
        uncertainty = (
            NEUTRAL
            if factors.uncertainty_duration is None
            else min(100.0, factors.uncertainty_duration)
        )
        return (
            margin * _WEIGHT_MARGIN
            + lead_changes * _WEIGHT_LEAD_CHANGES
            + late_drama * _WEIGHT_LATE_DRAMA
            + overtime * _WEIGHT_OVERTIME
            + uncertainty * _WEIGHT_UNCERTAINTY
        )


def _flag(value: bool | None) -> float:
    if value is None:
        return NEUTRAL
    return 100.0 if value else 0.0
