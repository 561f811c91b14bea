"""Emotional profile analyzer: runs the five dimension scorers over one event."""

from __future__ import annotations

import logging

from prioritization.dimensions.base import NEUTRAL, DimensionScorer
from prioritization.dimensions.stakes import StakesScorer
from prioritization.dimensions.suspense import SuspenseScorer
from prioritization.dimensions.transcendence import TranscendenceScorer
from prioritization.dimensions.underdog import UnderdogScorer
from prioritization.dimensions.volatility import VolatilityScorer
from prioritization.errors import InsufficientDataError
from prioritization.models import (
    CommunityBuzz,
    EmotionalAnalysisInput,
    EmotionalAnalysisResult,
    EmotionalDimension,
    EmotionalIntensity,
    EmotionalMoment,
    EmotionalMomentType,
    EmotionalProfile,
    MediaRecognition,
    PlayoffImplications,
    UnderdogPerformance,
    check_number,
    clamp_score,
)

logger = logging.getLogger(__name__)

EMOTIONAL_THRESHOLDS: dict[EmotionalIntensity, float] = {
    EmotionalIntensity.LOW: 25.0,
    EmotionalIntensity.MODERATE: 50.0,
    EmotionalIntensity.HIGH: 75.0,
    EmotionalIntensity.EXTREME: 90.0,
}

# Lead changes / momentum swings needed before we call out a moment.
_COMEBACK_LEAD_CHANGES = 3
_MOMENTUM_SHIFT_SWINGS = 3


class EmotionalProfileAnalyzer:
    """Turns raw per-category measurements into an emotional profile.

    Each dimension is scored by its own
    :class:`~prioritization.dimensions.base.DimensionScorer`.  Analysis never
    fails for lack of data: an unmeasured sub-field is scored at its neutral
    midpoint and lowers the reported ``confidence``; a wholly unmeasured
    section scores :data:`~prioritization.dimensions.base.NEUTRAL`.

    Stateless; construct once and share freely between threads.

    Args:
        scorers: Override the default scorers (mainly for tests).  Must
            contain exactly one scorer per dimension.
    """

    def __init__(self, scorers: list[DimensionScorer] | None = None) -> None:
        scorers = scorers or [
            SuspenseScorer(),
            StakesScorer(),
            VolatilityScorer(),
            UnderdogScorer(),
            TranscendenceScorer(),
        ]
        self._scorers = {s.dimension: s for s in scorers}
        if set(self._scorers) != set(EmotionalDimension):
            raise ValueError("exactly one scorer per emotional dimension is required")

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def analyze(self, analysis_input: EmotionalAnalysisInput) -> EmotionalAnalysisResult:
        """Score every dimension of *analysis_input*.

        Args:
            analysis_input: Measurements for one event.  Any sub-field may
                be ``None``.

        Returns:
            The profile, a 0-100 confidence, key moments and data sources.
        """
        scores: dict[EmotionalDimension, float] = {}
        present = 0
        counted = 0

        for dimension, scorer in self._scorers.items():
            factors = getattr(analysis_input, dimension.value)
            try:
                result = scorer.score(factors)
            except InsufficientDataError as exc:
                logger.debug("Scoring %s at neutral: %s", dimension.value, exc)
                scores[dimension] = NEUTRAL
                counted += len(scorer.counted_fields)
                continue
            scores[dimension] = result.value
            present += result.present
            counted += result.counted

        profile = EmotionalProfile(**{d.value: scores[d] for d in EmotionalDimension})
        confidence = float(round(present / counted * 100)) if counted else 0.0

        return EmotionalAnalysisResult(
            profile=profile,
            confidence=confidence,
            key_moments=tuple(self._identify_key_moments(analysis_input)),
            data_sources=tuple(self._identify_data_sources(analysis_input)),
        )

    @staticmethod
    def quick_analyze(
        score_margin: float,
        overtime: bool,
        is_playoff: bool,
        is_rivalry: bool,
    ) -> EmotionalProfile:
        """Rough profile for events where only the box score is known."""
        check_number(score_margin, "score_margin", 0)
        suspense = max(0.0, 100.0 - score_margin * 15) + (25.0 if overtime else 0.0)
        stakes = (70.0 if is_playoff else 30.0) + (20.0 if is_rivalry else 0.0)
        return EmotionalProfile(
            suspense=clamp_score(suspense),
            stakes=clamp_score(stakes),
            volatility=60.0 if overtime else 40.0,
            underdog=NEUTRAL,
            transcendence=60.0 if is_playoff and overtime else 30.0,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _identify_key_moments(analysis_input: EmotionalAnalysisInput) -> list[EmotionalMoment]:
        suspense = analysis_input.suspense
        underdog = analysis_input.underdog
        transcendence = analysis_input.transcendence
        volatility = analysis_input.volatility
        moments: list[EmotionalMoment] = []

        if suspense.late_drama:
            moments.append(
                EmotionalMoment(
                    timestamp="late",
                    type=EmotionalMomentType.DRAMATIC_FINISH,
                    description="Event was decided in the final moments",
                    impact={EmotionalDimension.SUSPENSE: 30.0},
                )
            )
        if suspense.went_to_overtime:
            moments.append(
                EmotionalMoment(
                    timestamp="overtime",
                    type=EmotionalMomentType.DRAMATIC_FINISH,
                    description="Event went to overtime/extra time",
                    impact={
                        EmotionalDimension.SUSPENSE: 25.0,
                        EmotionalDimension.VOLATILITY: 15.0,
                    },
                )
            )
        if underdog.underdog_performance in (
            UnderdogPerformance.UPSET,
            UnderdogPerformance.DOMINANT_UPSET,
        ):
            moments.append(
                EmotionalMoment(
                    timestamp="result",
                    type=EmotionalMomentType.UPSET_BREWING,
                    description="Underdog achieved the upset",
                    impact={
                        EmotionalDimension.UNDERDOG: 40.0,
                        EmotionalDimension.TRANSCENDENCE: 20.0,
                    },
                )
            )
        if transcendence.historic_moment:
            moments.append(
                EmotionalMoment(
                    timestamp="event",
                    type=EmotionalMomentType.HISTORIC_ACHIEVEMENT,
                    description="Historic moment occurred",
                    impact={EmotionalDimension.TRANSCENDENCE: 50.0},
                )
            )
        for record in transcendence.records_broken or []:
            moments.append(
                EmotionalMoment(
                    timestamp="event",
                    type=EmotionalMomentType.RECORD_BROKEN,
                    description=record,
                    impact={EmotionalDimension.TRANSCENDENCE: 20.0},
                )
            )
        if (suspense.lead_changes or 0) >= _COMEBACK_LEAD_CHANGES:
            moments.append(
                EmotionalMoment(
                    timestamp="event",
                    type=EmotionalMomentType.COMEBACK,
                    description=f"Multiple lead changes ({suspense.lead_changes})",
                    impact={
                        EmotionalDimension.SUSPENSE: 20.0,
                        EmotionalDimension.VOLATILITY: 25.0,
                    },
                )
            )
        if (volatility.momentum_swings or 0) >= _MOMENTUM_SHIFT_SWINGS:
            moments.append(
                EmotionalMoment(
                    timestamp="event",
                    type=EmotionalMomentType.MOMENTUM_SHIFT,
                    description=f"Momentum swung {volatility.momentum_swings} times",
                    impact={EmotionalDimension.VOLATILITY: 20.0},
                )
            )
        return moments

    @staticmethod
    def _identify_data_sources(analysis_input: EmotionalAnalysisInput) -> list[str]:
        sources: list[str] = []
        if analysis_input.suspense.score_margin is not None:
            sources.append("game_score")
        if analysis_input.suspense.lead_changes is not None:
            sources.append("play_by_play")
        if analysis_input.stakes.playoff_implications not in (None, PlayoffImplications.NONE):
            sources.append("standings")
        if analysis_input.transcendence.community_buzz not in (None, CommunityBuzz.LOW):
            sources.append("social_media")
        if analysis_input.transcendence.media_recognition not in (None, MediaRecognition.NONE):
            sources.append("media_coverage")
        if analysis_input.underdog.odds_differential is not None:
            sources.append("betting_odds")
        return sources


# ---------------------------------------------------------------------------
# Profile helpers
# ---------------------------------------------------------------------------


def get_dominant_factor(profile: EmotionalProfile) -> EmotionalDimension:
    """Return the dimension with the highest score.

    Exact ties go to the dimension that comes first in
    :class:`~prioritization.models.EmotionalDimension` order, so an all-equal
    profile reports ``SUSPENSE``.
    """
    dominant = EmotionalDimension.SUSPENSE
    for dimension in EmotionalDimension:
        if profile.get(dimension) > profile.get(dominant):
            dominant = dimension
    return dominant


def get_emotional_intensity(score: float) -> EmotionalIntensity:
    """Bucket a single 0-100 score.

    Raises:
        ValidationError: If *score* is outside [0, 100].
    """
    check_number(score, "score", 0, 100)
    for level in (EmotionalIntensity.EXTREME, EmotionalIntensity.HIGH, EmotionalIntensity.MODERATE):
        if score >= EMOTIONAL_THRESHOLDS[level]:
            return level
    return EmotionalIntensity.LOW
