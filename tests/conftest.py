"""Shared pytest fixtures for all prioritization tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from prioritization.analyzer import EmotionalProfileAnalyzer
from prioritization.calculator import PriorityCalculator
from prioritization.engine import PrioritizationEngine
from prioritization.models import (
    AggregatedTags,
    ComprehensionLevel,
    EmotionalAnalysisInput,
    EmotionalAnalysisResult,
    EmotionalProfile,
    EventRecord,
    FollowType,
    PriorityCalculationInput,
    SportFamiliarity,
    StakesFactors,
    SuspenseFactors,
    TranscendenceFactors,
    UnderdogFactors,
    UserFollow,
    UserPreferences,
    ViewingContext,
    VolatilityFactors,
)
from prioritization.tag_ledger import TagLedger
from prioritization.tags import TagAggregator

TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_profile(
    suspense: float = 0.0,
    stakes: float = 0.0,
    volatility: float = 0.0,
    underdog: float = 0.0,
    transcendence: float = 0.0,
) -> EmotionalProfile:
    return EmotionalProfile(
        suspense=suspense,
        stakes=stakes,
        volatility=volatility,
        underdog=underdog,
        transcendence=transcendence,
    )


def make_input(
    event_id: str = "e1",
    profile: EmotionalProfile | None = None,
    confidence: float = 100.0,
    tags: AggregatedTags | None = None,
    preferences: UserPreferences | None = None,
    context: ViewingContext | None = None,
    sport: str = "basketball",
    league: str = "nba",
    participants: tuple[str, ...] = ("BOS", "TOR"),
    community_engagement: float = 0.0,
    duration: float | None = None,
) -> PriorityCalculationInput:
    """Build a calculation input with a fully-confident analysis by default."""
    return PriorityCalculationInput(
        event_id=event_id,
        sport=sport,
        league=league,
        participants=participants,
        analysis=EmotionalAnalysisResult(
            profile=profile or make_profile(), confidence=confidence
        ),
        tags=tags or AggregatedTags(event_id=event_id),
        preferences=preferences or UserPreferences(user_id="u1"),
        context=context,
        community_engagement=community_engagement,
        duration=duration,
    )


# ---------------------------------------------------------------------------
# Analysis fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def thriller_input() -> EmotionalAnalysisInput:
    """A close, dramatic playoff game with every field measured."""
    return EmotionalAnalysisInput(
        suspense=SuspenseFactors(
            score_margin=1,
            lead_changes=5,
            late_drama=True,
            went_to_overtime=True,
            uncertainty_duration=90,
        ),
        stakes=StakesFactors(
            playoff_implications="elimination",
            rivalry_level="historic",
            records_at_stake=[],
            season_context="postseason",
        ),
        volatility=VolatilityFactors(
            momentum_swings=4, critical_moments=3, event_frequency=1.5, intensity_peaks=2
        ),
        underdog=UnderdogFactors(
            ranking_differential=2, historical_imbalance=1, underdog_performance="competitive"
        ),
        transcendence=TranscendenceFactors(
            historic_moment=False,
            community_buzz="high",
            media_recognition="notable",
            records_broken=[],
            standout_performances=["Tatum 45 pts"],
        ),
    )


@pytest.fixture
def analyzer() -> EmotionalProfileAnalyzer:
    return EmotionalProfileAnalyzer()


# ---------------------------------------------------------------------------
# Viewer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def bos_fan() -> UserPreferences:
    """A viewer who follows Boston as closely as possible."""
    return UserPreferences(
        user_id="u_bos",
        follows=[
            UserFollow(
                id="BOS",
                type=FollowType.TEAM,
                name="Boston",
                sport="basketball",
                league="nba",
                follow_strength=5,
            )
        ],
        sport_familiarity=[
            SportFamiliarity(sport="basketball", comprehension_level=ComprehensionLevel.EXPERT)
        ],
    )


@pytest.fixture
def new_viewer() -> UserPreferences:
    """A brand-new viewer with default preferences and no follows."""
    return UserPreferences(user_id="u_new")


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def aggregator() -> TagAggregator:
    return TagAggregator()


@pytest.fixture
def ledger(aggregator) -> TagLedger:
    return TagLedger(aggregator)


@pytest.fixture
def calculator() -> PriorityCalculator:
    return PriorityCalculator(max_workers=2)


@pytest.fixture
def engine(analyzer, aggregator, ledger, calculator) -> PrioritizationEngine:
    return PrioritizationEngine(
        analyzer=analyzer,
        aggregator=aggregator,
        ledger=ledger,
        calculator=calculator,
        max_workers=2,
    )


@pytest.fixture
def bos_game(thriller_input) -> EventRecord:
    return EventRecord(
        event_id="g_bos_tor",
        sport="basketball",
        league="nba",
        participants=["BOS", "TOR"],
        analysis_input=thriller_input,
        community_engagement=80,
        duration=150,
    )


@pytest.fixture
def quiet_game() -> EventRecord:
    """A lopsided, low-stakes game with everything measured."""
    return EventRecord(
        event_id="g_den_uta",
        sport="basketball",
        league="nba",
        participants=["DEN", "UTA"],
        analysis_input=EmotionalAnalysisInput(
            suspense=SuspenseFactors(
                score_margin=30,
                lead_changes=0,
                late_drama=False,
                went_to_overtime=False,
                uncertainty_duration=5,
            ),
            stakes=StakesFactors(
                playoff_implications="none",
                rivalry_level="none",
                records_at_stake=[],
                season_context="early",
            ),
            volatility=VolatilityFactors(
                momentum_swings=0, critical_moments=0, event_frequency=0, intensity_peaks=0
            ),
            underdog=UnderdogFactors(
                ranking_differential=1, historical_imbalance=0, underdog_performance="lost_badly"
            ),
            transcendence=TranscendenceFactors(
                historic_moment=False,
                community_buzz="low",
                media_recognition="none",
                records_broken=[],
                standout_performances=[],
            ),
        ),
        community_engagement=5,
        duration=140,
    )
