"""Transcendence: will people still talk about this event in ten years."""

from __future__ import annotations

from prioritization.dimensions.base import NEUTRAL, DimensionScorer, ensure_exhaustive
from prioritization.models import (
    CommunityBuzz,
    EmotionalDimension,
    MediaRecognition,
    TranscendenceFactors,
)

_BUZZ_SCORE = ensure_exhaustive(
    {
        CommunityBuzz.LOW: 10.0,
        CommunityBuzz.MODERATE: 35.0,
        CommunityBuzz.HIGH: 65.0,
        CommunityBuzz.VIRAL: 100.0,
    },
    CommunityBuzz,
)

_MEDIA_SCORE = ensure_exhaustive(
    {
        MediaRecognition.NONE: 0.0,
        MediaRecognition.NOTABLE: 30.0,
        MediaRecognition.SIGNIFICANT: 60.0,
        MediaRecognition.HISTORIC: 100.0,
    },
    MediaRecognition,
)

_WEIGHT_HISTORIC = 0.25
_WEIGHT_BUZZ = 0.25
_WEIGHT_MEDIA = 0.20
_WEIGHT_RECORDS = 0.15
_WEIGHT_STANDOUTS = 0.15

_POINTS_PER_RECORD = 40.0
_POINTS_PER_STANDOUT = 35.0

# Strong-signal thresholds on the 0-100 sub-signal scale.
_STRONG_BUZZ = _BUZZ_SCORE[CommunityBuzz.HIGH]
_STRONG_MEDIA = _MEDIA_SCORE[MediaRecognition.SIGNIFICANT]


class TranscendenceScorer(DimensionScorer):
    """Weighted blend of historic flag, buzz, media, records and standouts.

    Transcendence is rare, so the blend is scaled by how many *strong*
    signals agree: ×1.2 with three or more, ×1.0 with two, ×0.7 otherwise.
    Unmeasured sub-signals score :data:`NEUTRAL` and never count as strong.
    """

    dimension = EmotionalDimension.TRANSCENDENCE
    counted_fields = (
        "historic_moment",
        "community_buzz",
        "media_recognition",
        "records_broken",
        "standout_performances",
    )

    def _compute(self, factors: TranscendenceFactors) -> float:
        historic = NEUTRAL if factors.historic_moment is None else (
            100.0 if factors.historic_moment else 0.0
        )
        buzz = NEUTRAL if factors.community_buzz is None else _BUZZ_SCORE[factors.community_buzz]
        media = (
            NEUTRAL
            if factors.media_recognition is None
            else _MEDIA_SCORE[factors.media_recognition]
        )
        records = (
            NEUTRAL
            if factors.records_broken is None
            else min(100.0, len(factors.records_broken) * _POINTS_PER_RECORD)
        )
        standouts = (
            NEUTRAL
            if factors.standout_performances is None
            else min(100.0, len(factors.standout_performances) * _POINTS_PER_STANDOUT)
        )

        strong_signals = sum(
            [
                factors.historic_moment is True,
                factors.community_buzz is not None and buzz >= _STRONG_BUZZ,
                factors.media_recognition is not None and media >= _STRONG_MEDIA,
                bool(factors.records_broken),
                bool(factors.standout_performances),
            ]
        )
        if strong_signals >= 3:
            multiplier = 1.2
        elif strong_signals == 2:
            multiplier = 1.0
        else:
            multiplier = 0.7

        base = (
            historic * _WEIGHT_HISTORIC
            + buzz * _WEIGHT_BUZZ
            + media * _WEIGHT_MEDIA
            + records * _WEIGHT_RECORDS
            + standouts * _WEIGHT_STANDOUTS
        )
        return base * multiplier
