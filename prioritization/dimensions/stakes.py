"""Stakes: what was riding on the event."""

from __future__ import annotations

from prioritization.dimensions.base import DimensionScorer, ensure_exhaustive
from prioritization.models import (
    EmotionalDimension,
    PlayoffImplications,
    RivalryLevel,
    SeasonContext,
    StakesFactors,
    TournamentStage,
)

_PLAYOFF_POINTS = ensure_exhaustive(
    {
        PlayoffImplications.NONE: 0.0,
        PlayoffImplications.CLINCH: 30.0,
        PlayoffImplications.ELIMINATION: 40.0,
        PlayoffImplications.CHAMPIONSHIP: 50.0,
    },
    PlayoffImplications,
)

_RIVALRY_POINTS = ensure_exhaustive(
    {
        RivalryLevel.NONE: 0.0,
        RivalryLevel.DIVISION: 10.0,
        RivalryLevel.HISTORIC: 20.0,
        RivalryLevel.INTENSE: 30.0,
    },
    RivalryLevel,
)

_STAGE_POINTS = ensure_exhaustive(
    {
        TournamentStage.GROUP: 5.0,
        TournamentStage.KNOCKOUT: 10.0,
        TournamentStage.SEMIFINAL: 15.0,
        TournamentStage.FINAL: 20.0,
    },
    TournamentStage,
)

_SEASON_MULTIPLIER = ensure_exhaustive(
    {
        SeasonContext.EARLY: 0.7,
        SeasonContext.MID: 0.85,
        SeasonContext.LATE: 1.0,
        SeasonContext.POSTSEASON: 1.2,
    },
    SeasonContext,
)

_POINTS_PER_RECORD = 8.0
_RECORDS_CAP = 20.0


class StakesScorer(DimensionScorer):
    """Additive categorical lookups scaled by the season context.

    ``(playoff + rivalry + records + stage) × season``.  A missing lookup
    contributes half of its maximum; a missing season context scales by 1.0.
    Tournament stage is a refinement: absent means "not a tournament" and
    contributes nothing.
    """

    dimension = EmotionalDimension.STAKES
    counted_fields = (
        "playoff_implications",
        "rivalry_level",
        "records_at_stake",
        "season_context",
    )
    optional_fields = ("tournament_stage",)

    def _compute(self, factors: StakesFactors) -> float:
        playoff = (
            _PLAYOFF_POINTS[PlayoffImplications.CHAMPIONSHIP] / 2
            if factors.playoff_implications is None
            else _PLAYOFF_POINTS[factors.playoff_implications]
        )
        rivalry = (
            _RIVALRY_POINTS[RivalryLevel.INTENSE] / 2
            if factors.rivalry_level is None
            else _RIVALRY_POINTS[factors.rivalry_level]
        )
        records = (
            _RECORDS_CAP / 2
            if factors.records_at_stake is None
            else min(_RECORDS_CAP, len(factors.records_at_stake) * _POINTS_PER_RECORD)
        )
        stage = (
            0.0
            if factors.tournament_stage is None
            else _STAGE_POINTS[factors.tournament_stage]
        )
        season = (
            1.0
            if factors.season_context is None
            else _SEASON_MULTIPLIER[factors.season_context]
        )
        return (playoff + rivalry + records + stage) * season
