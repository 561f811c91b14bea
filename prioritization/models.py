"""Core domain dataclasses shared across all prioritization modules."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from prioritization.errors import ValidationError

E = TypeVar("E", bound=Enum)

SCORE_MIN = 0.0
SCORE_MAX = 100.0


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class EmotionalDimension(str, Enum):
    """The five emotional dimensions, in tie-break priority order."""

    SUSPENSE = "suspense"
    STAKES = "stakes"
    VOLATILITY = "volatility"
    UNDERDOG = "underdog"
    TRANSCENDENCE = "transcendence"


class EmotionalIntensity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class EmotionalMomentType(str, Enum):
    LEAD_CHANGE = "lead_change"
    COMEBACK = "comeback"
    CLUTCH_PLAY = "clutch_play"
    CONTROVERSY = "controversy"
    RECORD_BROKEN = "record_broken"
    UPSET_BREWING = "upset_brewing"
    DOMINANT_STRETCH = "dominant_stretch"
    MOMENTUM_SHIFT = "momentum_shift"
    DRAMATIC_FINISH = "dramatic_finish"
    HISTORIC_ACHIEVEMENT = "historic_achievement"


class PlayoffImplications(str, Enum):
    NONE = "none"
    CLINCH = "clinch"
    ELIMINATION = "elimination"
    CHAMPIONSHIP = "championship"


class RivalryLevel(str, Enum):
    NONE = "none"
    DIVISION = "division"
    HISTORIC = "historic"
    INTENSE = "intense"


class TournamentStage(str, Enum):
    GROUP = "group"
    KNOCKOUT = "knockout"
    SEMIFINAL = "semifinal"
    FINAL = "final"


class SeasonContext(str, Enum):
    EARLY = "early"
    MID = "mid"
    LATE = "late"
    POSTSEASON = "postseason"


class UnderdogPerformance(str, Enum):
    LOST_BADLY = "lost_badly"
    COMPETITIVE = "competitive"
    UPSET = "upset"
    DOMINANT_UPSET = "dominant_upset"


class CommunityBuzz(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VIRAL = "viral"


class MediaRecognition(str, Enum):
    NONE = "none"
    NOTABLE = "notable"
    SIGNIFICANT = "significant"
    HISTORIC = "historic"


class TagCategory(str, Enum):
    """What aspect of an event a tag describes."""

    EMOTIONAL = "emotional"  # how it felt (nail-biter, thriller)
    CONTEXT = "context"      # surrounding context (rivalry, playoff)
    OUTCOME = "outcome"      # what happened (upset, comeback)
    QUALITY = "quality"      # quality of play (masterclass, sloppy)
    MOMENT = "moment"        # specific moments (buzzer-beater)


class TagSource(str, Enum):
    """Who produced a tag, in ascending order of authority."""

    ALGORITHMIC = "algorithmic"
    USER = "user"
    CURATOR = "curator"


class FollowType(str, Enum):
    TEAM = "team"
    PLAYER = "player"
    LEAGUE = "league"
    COMPETITION = "competition"


class ComprehensionLevel(str, Enum):
    NOVICE = "novice"
    CASUAL = "casual"
    INFORMED = "informed"
    EXPERT = "expert"

    @property
    def rank(self) -> int:
        return _COMPREHENSION_RANK[self]


class WatchFrequency(str, Enum):
    RARELY = "rarely"
    OCCASIONALLY = "occasionally"
    REGULARLY = "regularly"
    FREQUENTLY = "frequently"


class ViewingMood(str, Enum):
    CASUAL = "casual"
    ENGAGED = "engaged"
    INTENSE = "intense"
    DISCOVERY = "discovery"


class SpoilerTolerance(str, Enum):
    """How much outcome information the viewer accepts this session."""

    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    FULL = "full"


class SpoilerLevel(str, Enum):
    """How much outcome information a produced artifact contains."""

    SAFE = "safe"
    MILD = "mild"
    FULL = "full"


class PriorityTier(str, Enum):
    """Coarse recommendation bucket, highest priority first."""

    MUST = "must"
    WORTH = "worth"
    HIGHLIGHTS = "highlights"
    SKIP = "skip"

    @property
    def rank(self) -> int:
        """Higher rank means higher priority (``MUST`` is 3, ``SKIP`` is 0)."""
        return _TIER_RANK[self]


class PriorityReasonType(str, Enum):
    FOLLOW = "follow"
    PREFERENCE_MATCH = "preference_match"
    UNIVERSAL = "universal"
    TRENDING = "trending"
    HISTORIC = "historic"
    RIVALRY = "rivalry"
    TIME_FIT = "time_fit"
    DEGRADED = "degraded"


_COMPREHENSION_RANK: dict[ComprehensionLevel, int] = {
    ComprehensionLevel.NOVICE: 0,
    ComprehensionLevel.CASUAL: 1,
    ComprehensionLevel.INFORMED: 2,
    ComprehensionLevel.EXPERT: 3,
}

_TIER_RANK: dict[PriorityTier, int] = {
    PriorityTier.MUST: 3,
    PriorityTier.WORTH: 2,
    PriorityTier.HIGHLIGHTS: 1,
    PriorityTier.SKIP: 0,
}

# Minimum composite score for each tier, checked top-down.  These values are
# a product decision; the only hard rule is that they stay monotonic.
PRIORITY_TIER_THRESHOLDS: dict[PriorityTier, float] = {
    PriorityTier.MUST: 80.0,
    PriorityTier.WORTH: 60.0,
    PriorityTier.HIGHLIGHTS: 40.0,
    PriorityTier.SKIP: 0.0,
}


def get_priority_tier(score: float) -> PriorityTier:
    """Map a composite score to its tier.

    Monotonic: a strictly higher score never yields a lower tier.
    """
    for tier in (PriorityTier.MUST, PriorityTier.WORTH, PriorityTier.HIGHLIGHTS):
        if score >= PRIORITY_TIER_THRESHOLDS[tier]:
            return tier
    return PriorityTier.SKIP


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def coerce_enum(
    enum_cls: type[E], value: Any, field_name: str, required: bool = False
) -> E | None:
    """Return *value* as a member of *enum_cls*; ``None`` passes through unless *required*.

    Raises:
        ValidationError: If *value* is not a valid member value.
    """
    if value is None and required:
        raise ValidationError(field_name, "is required")
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            field_name, f"must be one of [{allowed}], got {value!r}"
        ) from None


def check_number(
    value: Any,
    field_name: str,
    low: float | None = None,
    high: float | None = None,
    integer: bool = False,
    required: bool = False,
) -> None:
    """Reject non-numeric or out-of-range values.  ``None`` is accepted unless *required*."""
    if value is None:
        if required:
            raise ValidationError(field_name, "is required")
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, f"must be a number, got {value!r}")
    if isinstance(value, float) and math.isnan(value):
        raise ValidationError(field_name, "must not be NaN")
    if integer and not float(value).is_integer():
        raise ValidationError(field_name, f"must be a whole number, got {value!r}")
    if low is not None and value < low:
        raise ValidationError(field_name, f"must be >= {low}, got {value!r}")
    if high is not None and value > high:
        raise ValidationError(field_name, f"must be <= {high}, got {value!r}")


def check_bool(value: Any, field_name: str, required: bool = False) -> None:
    if value is None and required:
        raise ValidationError(field_name, "is required")
    if value is not None and not isinstance(value, bool):
        raise ValidationError(field_name, f"must be a boolean, got {value!r}")


def check_str_list(value: Any, field_name: str, required: bool = False) -> None:
    """Reject anything but a list (or tuple) of strings.  A bare string is rejected."""
    if value is None:
        if required:
            raise ValidationError(field_name, "is required")
        return
    if not isinstance(value, (list, tuple)):
        raise ValidationError(field_name, f"must be a list of strings, got {value!r}")
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ValidationError(f"{field_name}[{i}]", f"must be a string, got {item!r}")


def check_text(value: Any, field_name: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(field_name, f"must be a non-empty string, got {value!r}")


def clamp_score(value: float) -> float:
    """Clamp *value* into [0, 100] and round to one decimal place."""
    return round(max(SCORE_MIN, min(SCORE_MAX, value)), 1)


# ---------------------------------------------------------------------------
# Emotional profile and analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EmotionalProfile:
    """Normalised 0-100 score per emotional dimension.

    Attributes:
        suspense: Uncertainty of outcome (close scores, late drama).
        stakes: What was at risk (playoffs, rivalry, records).
        volatility: Rapid hope/fear swings.
        underdog: An asymmetry being corrected.
        transcendence: Instant-classic potential.
    """

    suspense: float
    stakes: float
    volatility: float
    underdog: float
    transcendence: float

    def __post_init__(self) -> None:
        for dimension in EmotionalDimension:
            check_number(
                getattr(self, dimension.value),
                f"profile.{dimension.value}",
                SCORE_MIN,
                SCORE_MAX,
            )

    def get(self, dimension: EmotionalDimension) -> float:
        return getattr(self, dimension.value)

    def as_dict(self) -> dict[EmotionalDimension, float]:
        return {d: self.get(d) for d in EmotionalDimension}

    def mean(self) -> float:
        return sum(self.get(d) for d in EmotionalDimension) / len(EmotionalDimension)


@dataclass
class SuspenseFactors:
    """Raw measurements behind the suspense score.  ``None`` = not measured."""

    score_margin: float | None = None
    lead_changes: int | None = None
    late_drama: bool | None = None
    went_to_overtime: bool | None = None
    uncertainty_duration: float | None = None

    def __post_init__(self) -> None:
        check_number(self.score_margin, "suspense.score_margin", 0)
        check_number(self.lead_changes, "suspense.lead_changes", 0, integer=True)
        check_bool(self.late_drama, "suspense.late_drama")
        check_bool(self.went_to_overtime, "suspense.went_to_overtime")
        check_number(
            self.uncertainty_duration, "suspense.uncertainty_duration", 0, 100
        )


@dataclass
class StakesFactors:
    """Raw measurements behind the stakes score.  ``None`` = not measured."""

    playoff_implications: PlayoffImplications | None = None
    rivalry_level: RivalryLevel | None = None
    records_at_stake: list[str] | None = None
    tournament_stage: TournamentStage | None = None
    season_context: SeasonContext | None = None

    def __post_init__(self) -> None:
        self.playoff_implications = coerce_enum(
            PlayoffImplications, self.playoff_implications, "stakes.playoff_implications"
        )
        self.rivalry_level = coerce_enum(
            RivalryLevel, self.rivalry_level, "stakes.rivalry_level"
        )
        check_str_list(self.records_at_stake, "stakes.records_at_stake")
        self.tournament_stage = coerce_enum(
            TournamentStage, self.tournament_stage, "stakes.tournament_stage"
        )
        self.season_context = coerce_enum(
            SeasonContext, self.season_context, "stakes.season_context"
        )


@dataclass
class VolatilityFactors:
    """Raw measurements behind the volatility score.  ``None`` = not measured."""

    momentum_swings: int | None = None
    critical_moments: int | None = None
    event_frequency: float | None = None
    intensity_peaks: int | None = None

    def __post_init__(self) -> None:
        check_number(self.momentum_swings, "volatility.momentum_swings", 0, integer=True)
        check_number(self.critical_moments, "volatility.critical_moments", 0, integer=True)
        check_number(self.event_frequency, "volatility.event_frequency", 0)
        check_number(self.intensity_peaks, "volatility.intensity_peaks", 0, integer=True)


@dataclass
class UnderdogFactors:
    """Raw measurements behind the underdog score.  ``None`` = not measured.

    Attributes:
        ranking_differential: Pre-event ranking/seed gap (absolute).
        odds_differential: Betting odds gap, when available.
        historical_imbalance: Head-to-head imbalance.
        underdog_performance: How the underdog actually fared.
    """

    ranking_differential: float | None = None
    odds_differential: float | None = None
    historical_imbalance: float | None = None
    underdog_performance: UnderdogPerformance | None = None

    def __post_init__(self) -> None:
        check_number(self.ranking_differential, "underdog.ranking_differential", 0)
        check_number(self.odds_differential, "underdog.odds_differential", 0)
        check_number(self.historical_imbalance, "underdog.historical_imbalance", 0)
        self.underdog_performance = coerce_enum(
            UnderdogPerformance, self.underdog_performance, "underdog.underdog_performance"
        )


@dataclass
class TranscendenceFactors:
    """Raw measurements behind the transcendence score.  ``None`` = not measured."""

    historic_moment: bool | None = None
    community_buzz: CommunityBuzz | None = None
    media_recognition: MediaRecognition | None = None
    records_broken: list[str] | None = None
    standout_performances: list[str] | None = None

    def __post_init__(self) -> None:
        check_bool(self.historic_moment, "transcendence.historic_moment")
        self.community_buzz = coerce_enum(
            CommunityBuzz, self.community_buzz, "transcendence.community_buzz"
        )
        self.media_recognition = coerce_enum(
            MediaRecognition, self.media_recognition, "transcendence.media_recognition"
        )
        check_str_list(self.records_broken, "transcendence.records_broken")
        check_str_list(self.standout_performances, "transcendence.standout_performances")


@dataclass
class EmotionalAnalysisInput:
    """Everything known about one event, grouped by dimension."""

    suspense: SuspenseFactors = field(default_factory=SuspenseFactors)
    stakes: StakesFactors = field(default_factory=StakesFactors)
    volatility: VolatilityFactors = field(default_factory=VolatilityFactors)
    underdog: UnderdogFactors = field(default_factory=UnderdogFactors)
    transcendence: TranscendenceFactors = field(default_factory=TranscendenceFactors)


@dataclass(frozen=True)
class EmotionalMoment:
    """A notable moment and which dimensions it pushed up.

    Attributes:
        timestamp: Coarse position in the event (``"late"``, ``"overtime"``...).
        type: Kind of moment.
        description: Short human-readable description.
        impact: Partial profile; points contributed per dimension.
    """

    timestamp: str
    type: EmotionalMomentType
    description: str
    impact: dict[EmotionalDimension, float] = field(default_factory=dict)


@dataclass(frozen=True)
class EmotionalAnalysisResult:
    """Output of one analysis run.  Immutable; recompute when inputs change."""

    profile: EmotionalProfile
    confidence: float
    key_moments: tuple[EmotionalMoment, ...] = ()
    data_sources: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        check_number(self.confidence, "analysis.confidence", SCORE_MIN, SCORE_MAX)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventTag:
    """A tag describing an event, with the evidence behind it.

    Attributes:
        name: Normalised tag text (e.g. ``"nail-biter"``).
        category: What aspect of the event the tag describes.
        source: Highest-authority source that asserted the tag.
        weight: Combined evidence weight; the sort key of aggregated tags.
        count: Number of independent submissions behind the tag.
        confidence: 0-100 confidence in the tag.
        sources: Every source that contributed evidence.
        curator_verified: A curator has net-approved the tag.
    """

    name: str
    category: TagCategory
    source: TagSource
    weight: float = 1.0
    count: int = 1
    confidence: float = 70.0
    sources: tuple[TagSource, ...] = ()
    curator_verified: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("tag.name", "must be non-empty")
        check_number(self.weight, "tag.weight", 0)
        check_number(self.count, "tag.count", 0, integer=True)
        check_number(self.confidence, "tag.confidence", SCORE_MIN, SCORE_MAX)

    @property
    def key(self) -> tuple[str, TagCategory]:
        return (self.name, self.category)


@dataclass
class UserTagInput:
    """A community member tagging an event."""

    event_id: str
    user_id: str
    tag: str
    category: TagCategory | None = None

    def __post_init__(self) -> None:
        check_text(self.event_id, "user_tag.event_id")
        check_text(self.user_id, "user_tag.user_id")
        check_text(self.tag, "user_tag.tag")
        self.category = coerce_enum(TagCategory, self.category, "user_tag.category")


@dataclass
class CuratorVerificationInput:
    """A curator approving (or rejecting) a tag on an event."""

    event_id: str
    curator_id: str
    tag: str
    verified: bool = True
    category: TagCategory | None = None

    def __post_init__(self) -> None:
        check_text(self.event_id, "curator.event_id")
        check_text(self.curator_id, "curator.curator_id")
        check_text(self.tag, "curator.tag")
        check_bool(self.verified, "curator.verified", required=True)
        self.category = coerce_enum(TagCategory, self.category, "curator.category")


@dataclass(frozen=True)
class AggregatedTags:
    """Deduplicated, weight-sorted tags for one event.

    Attributes:
        event_id: The tagged event.
        tags: One entry per ``(name, category)``, heaviest first.
        confidence: Weight-averaged confidence across all tags.
        total_user_tags: Distinct user submissions considered.
        curator_verified_count: Tags with net curator approval.
        notes: Audit notes, one per resolved tag conflict.
    """

    event_id: str
    tags: tuple[EventTag, ...] = ()
    confidence: float = 0.0
    total_user_tags: int = 0
    curator_verified_count: int = 0
    notes: tuple[str, ...] = ()

    def names(self) -> list[str]:
        return [t.name for t in self.tags]


# ---------------------------------------------------------------------------
# Viewer preferences and context
# ---------------------------------------------------------------------------


@dataclass
class UserFollow:
    """A team, player, league or competition the viewer follows.

    Attributes:
        follow_strength: 1 (casual interest) to 5 (never misses a game).
    """

    id: str
    type: FollowType
    name: str
    sport: str
    league: str | None = None
    follow_strength: int = 3
    followed_since: datetime | None = None

    def __post_init__(self) -> None:
        check_text(self.id, "follow.id")
        self.type = coerce_enum(FollowType, self.type, "follow.type", required=True)
        check_number(
            self.follow_strength, "follow.follow_strength", 1, 5, integer=True, required=True
        )


@dataclass
class SportFamiliarity:
    sport: str
    comprehension_level: ComprehensionLevel = ComprehensionLevel.NOVICE
    watch_frequency: WatchFrequency = WatchFrequency.OCCASIONALLY
    preferred_leagues: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.comprehension_level = coerce_enum(
            ComprehensionLevel,
            self.comprehension_level,
            "familiarity.comprehension_level",
            required=True,
        )
        self.watch_frequency = coerce_enum(
            WatchFrequency, self.watch_frequency, "familiarity.watch_frequency", required=True
        )
        check_str_list(self.preferred_leagues, "familiarity.preferred_leagues", required=True)


@dataclass
class EmotionalPreferences:
    """How much the viewer values each kind of experience, 0 (avoid) to 5.

    Defaults are the profile given to brand-new viewers.
    """

    nail_biters: int = 3
    dominance: int = 2
    upsets: int = 3
    historic_moments: int = 4
    skill_display: int = 3
    intensity: int = 2
    drama: int = 3

    def __post_init__(self) -> None:
        for name in PREFERENCE_FIELDS:
            check_number(
                getattr(self, name), f"preferences.{name}", 0, 5, integer=True, required=True
            )

    def as_list(self) -> list[int]:
        return [getattr(self, name) for name in PREFERENCE_FIELDS]


PREFERENCE_FIELDS: tuple[str, ...] = (
    "nail_biters",
    "dominance",
    "upsets",
    "historic_moments",
    "skill_display",
    "intensity",
    "drama",
)


@dataclass
class ViewingContext:
    """Session-scoped overrides supplied with each request; never persisted.

    Attributes:
        available_time: Minutes the viewer has, if known.
        current_mood: What the viewer is in the mood for.
        spoiler_tolerance: Defaults to fully spoiler-free.
        already_watched: Event IDs to drop from lists entirely.
    """

    available_time: float | None = None
    current_mood: ViewingMood | None = None
    spoiler_tolerance: SpoilerTolerance = SpoilerTolerance.NONE
    already_watched: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.available_time is not None:
            check_number(self.available_time, "context.available_time", 0)
            if self.available_time <= 0:
                raise ValidationError("context.available_time", "must be positive")
        self.current_mood = coerce_enum(ViewingMood, self.current_mood, "context.current_mood")
        self.spoiler_tolerance = coerce_enum(
            SpoilerTolerance, self.spoiler_tolerance, "context.spoiler_tolerance", required=True
        )
        check_str_list(self.already_watched, "context.already_watched", required=True)


@dataclass
class UserPreferences:
    """Stored preferences for one viewer.  Read-only to the engine."""

    user_id: str
    follows: list[UserFollow] = field(default_factory=list)
    sport_familiarity: list[SportFamiliarity] = field(default_factory=list)
    emotional_preferences: EmotionalPreferences = field(default_factory=EmotionalPreferences)
    viewing_context: ViewingContext | None = None
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        check_text(self.user_id, "preferences.user_id")


@dataclass
class UserPreferencesInput:
    """Partial update to a viewer's preferences.  ``None`` = leave unchanged.

    ``emotional_preferences`` and ``viewing_context`` are merged field by
    field; ``follows`` and ``sport_familiarity`` replace the stored lists.
    """

    follows: list[UserFollow] | None = None
    sport_familiarity: list[SportFamiliarity] | None = None
    emotional_preferences: dict[str, int] | None = None
    viewing_context: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Priorities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriorityReason:
    """One traceable reason behind a priority, with its score contribution."""

    type: PriorityReasonType
    text: str
    contribution: float


@dataclass(frozen=True)
class ScoreBreakdown:
    """Every term that went into a composite score (each 0-100).

    Attributes:
        relevance: Follow relevance.
        preference_alignment: Match against emotional preferences.
        intrinsic_quality: Comprehension-weighted emotional magnitude.
        trending: Community engagement.
        time_fit: How well the event fits the viewer's available time.
        comprehension: Viewer's comprehension of the event's sport.
        direct_follow: A followed team, player or league is involved.
        composite: Final clamped score that decides the tier.
    """

    relevance: float = 0.0
    preference_alignment: float = 0.0
    intrinsic_quality: float = 0.0
    trending: float = 0.0
    time_fit: float = 50.0
    comprehension: ComprehensionLevel = ComprehensionLevel.NOVICE
    direct_follow: bool = False
    composite: float = 0.0


@dataclass
class EventRecord:
    """An event as supplied by a sport data adapter, before analysis.

    Attributes:
        event_id: Unique event identifier.
        sport: Sport key (e.g. ``"basketball"``).
        league: League ID the event belongs to.
        participants: Team/player IDs taking part.
        analysis_input: Raw emotional measurements.
        community_engagement: 0-100 engagement signal.
        duration: Watch time in minutes, if known.
    """

    event_id: str
    sport: str
    league: str
    participants: list[str] = field(default_factory=list)
    analysis_input: EmotionalAnalysisInput = field(default_factory=EmotionalAnalysisInput)
    community_engagement: float = 0.0
    duration: float | None = None

    def __post_init__(self) -> None:
        check_text(self.event_id, "event.event_id")
        check_text(self.sport, "event.sport")
        check_text(self.league, "event.league")
        check_str_list(self.participants, "event.participants", required=True)
        check_number(
            self.community_engagement, "event.community_engagement", 0, 100, required=True
        )
        check_number(self.duration, "event.duration", 0)


@dataclass(frozen=True)
class PriorityCalculationInput:
    """Everything needed to prioritise one event for one viewer."""

    event_id: str
    sport: str
    league: str
    participants: tuple[str, ...]
    analysis: EmotionalAnalysisResult
    tags: AggregatedTags
    preferences: UserPreferences
    context: ViewingContext | None = None
    community_engagement: float = 0.0
    duration: float | None = None

    def __post_init__(self) -> None:
        check_text(self.event_id, "event.event_id")
        check_number(
            self.community_engagement, "event.community_engagement", 0, 100, required=True
        )
        if self.duration is not None:
            check_number(self.duration, "event.duration", 0)

    @property
    def effective_context(self) -> ViewingContext:
        """The request context, else the stored one, else spoiler-free defaults."""
        return self.context or self.preferences.viewing_context or ViewingContext()


@dataclass(frozen=True)
class EventPriority:
    """Priority of one event for one viewer.  Derived; never persisted."""

    event_id: str
    tier: PriorityTier
    score_breakdown: ScoreBreakdown
    reasons: tuple[PriorityReason, ...]
    spoiler_level: SpoilerLevel
    sport: str = ""
    league: str = ""
    duration: float | None = None
    emotional_profile: EmotionalProfile | None = None
    tags: tuple[EventTag, ...] = ()
    summary: str = ""
    degraded: bool = False

    @property
    def composite(self) -> float:
        return self.score_breakdown.composite

    @property
    def relevance(self) -> float:
        return self.score_breakdown.relevance


@dataclass
class PriorityFilters:
    """Filters applied when assembling a prioritised list.

    Attributes:
        sports: Keep only these sports.
        leagues: Keep only these leagues.
        min_tier: Drop events below this tier.
        tags: Keep events carrying at least one of these tags.
        followed_only: Keep only events with a direct follow match.
        max_duration: Drop events longer than this many minutes.
        min_comprehension: Drop sports the viewer understands less well.
        exclude_watched: Drop ``already_watched`` events (always on for
            the viewing context's own list).
        already_watched: Extra event IDs to drop.
    """

    sports: list[str] | None = None
    leagues: list[str] | None = None
    min_tier: PriorityTier | None = None
    tags: list[str] | None = None
    followed_only: bool = False
    max_duration: float | None = None
    min_comprehension: ComprehensionLevel | None = None
    exclude_watched: bool = True
    already_watched: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.min_tier = coerce_enum(PriorityTier, self.min_tier, "filters.min_tier")
        self.min_comprehension = coerce_enum(
            ComprehensionLevel, self.min_comprehension, "filters.min_comprehension"
        )
        check_str_list(self.sports, "filters.sports")
        check_str_list(self.leagues, "filters.leagues")
        check_str_list(self.tags, "filters.tags")
        check_str_list(self.already_watched, "filters.already_watched", required=True)
        check_bool(self.followed_only, "filters.followed_only", required=True)
        check_bool(self.exclude_watched, "filters.exclude_watched", required=True)
        if self.max_duration is not None:
            check_number(self.max_duration, "filters.max_duration", 0)


@dataclass(frozen=True)
class PriorityListSummary:
    """Aggregate statistics over a prioritised list."""

    total_events: int
    tier_counts: dict[PriorityTier, int]
    top_reason_types: tuple[tuple[PriorityReasonType, int], ...] = ()
    top_tags: tuple[tuple[str, int], ...] = ()
    top_emotional_factors: tuple[tuple[EmotionalDimension, float], ...] = ()
    sport_breakdown: tuple[tuple[str, int, float], ...] = ()
    degraded_count: int = 0
    excluded_watched: int = 0


@dataclass(frozen=True)
class PrioritizedEventList:
    """Ordered priorities for one viewer plus their summary."""

    user_id: str
    events: tuple[EventPriority, ...]
    summary: PriorityListSummary
    generated_at: datetime

    @property
    def tiers(self) -> dict[PriorityTier, list[EventPriority]]:
        grouped: dict[PriorityTier, list[EventPriority]] = {t: [] for t in PriorityTier}
        for priority in self.events:
            grouped[priority.tier].append(priority)
        return grouped
