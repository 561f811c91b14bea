"""Priority calculator: turns analysis, tags and preferences into tiered priorities."""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields
from datetime import datetime, timezone

import numpy as np

from prioritization.analyzer import get_dominant_factor
from prioritization.dimensions.base import ensure_exhaustive
from prioritization.errors import ValidationError
from prioritization.models import (
    PREFERENCE_FIELDS,
    PRIORITY_TIER_THRESHOLDS,
    AggregatedTags,
    ComprehensionLevel,
    EmotionalDimension,
    EmotionalPreferences,
    EmotionalProfile,
    EventPriority,
    EventTag,
    PrioritizedEventList,
    PriorityCalculationInput,
    PriorityFilters,
    PriorityListSummary,
    PriorityReason,
    PriorityReasonType,
    PriorityTier,
    ScoreBreakdown,
    SpoilerLevel,
    SpoilerTolerance,
    TagCategory,
    ViewingContext,
    ViewingMood,
    clamp_score,
    get_priority_tier,
)
from prioritization.preferences import (
    calculate_follow_relevance,
    followed_names,
    get_sport_comprehension,
    has_direct_follow,
)
from prioritization.spoilers import (
    allowed_level,
    classify_tag,
    classify_text,
    contains_spoiler,
    gate_tags,
    highest_level,
)
from prioritization.tags import normalize_tag

logger = logging.getLogger(__name__)

_PROFILE_SIGNAL_SHARE = 0.75  # the rest of each alignment signal comes from tags
_NEUTRAL_ALIGNMENT = 50.0
_UNKNOWN_TIME_FIT = 50.0

_DEFAULT_DEGRADED_THRESHOLD = 40.0
_DEGRADED_COMPOSITE = PRIORITY_TIER_THRESHOLDS[PriorityTier.HIGHLIGHTS]

_TOP_REASON_TYPES = 5
_TOP_TAGS = 10
_SUMMARY_SEPARATOR = " · "


@dataclass(frozen=True)
class PriorityWeights:
    """Composite-score weights.  Must sum to 1.

    The defaults are a product decision: intrinsic event quality leads,
    personal connection follows, taste and practicalities refine.
    """

    intrinsic_quality: float = 0.40
    relevance: float = 0.25
    preference_alignment: float = 0.20
    trending: float = 0.05
    time_fit: float = 0.10

    def __post_init__(self) -> None:
        values = [getattr(self, f.name) for f in fields(self)]
        if any(v < 0 for v in values) or not math.isclose(sum(values), 1.0, abs_tol=1e-9):
            raise ValidationError("weights", f"must be non-negative and sum to 1, got {values}")


# ---------------------------------------------------------------------------
# Comprehension re-weighting
# ---------------------------------------------------------------------------

# Per-dimension weights over (suspense, stakes, volatility, underdog,
# transcendence).  Novices get more from visible drama, experts from context.
_DIMENSION_WEIGHTS = ensure_exhaustive(
    {
        ComprehensionLevel.NOVICE: np.array([0.30, 0.15, 0.30, 0.15, 0.10]),
        ComprehensionLevel.CASUAL: np.array([0.30, 0.20, 0.20, 0.15, 0.15]),
        ComprehensionLevel.INFORMED: np.array([0.25, 0.25, 0.15, 0.15, 0.20]),
        ComprehensionLevel.EXPERT: np.array([0.20, 0.30, 0.10, 0.15, 0.25]),
    },
    ComprehensionLevel,
)

# Share of intrinsic quality taken from the tag signal when tags exist.
_TAG_SIGNAL_SHARE = ensure_exhaustive(
    {
        ComprehensionLevel.NOVICE: 0.30,
        ComprehensionLevel.CASUAL: 0.20,
        ComprehensionLevel.INFORMED: 0.15,
        ComprehensionLevel.EXPERT: 0.10,
    },
    ComprehensionLevel,
)

# ---------------------------------------------------------------------------
# Preference alignment
# ---------------------------------------------------------------------------

# Tag category feeding each preference, in PREFERENCE_FIELDS order.
_PREFERENCE_TAG_CATEGORY: dict[str, TagCategory] = {
    "nail_biters": TagCategory.EMOTIONAL,
    "dominance": TagCategory.QUALITY,
    "upsets": TagCategory.OUTCOME,
    "historic_moments": TagCategory.MOMENT,
    "skill_display": TagCategory.QUALITY,
    "intensity": TagCategory.CONTEXT,
    "drama": TagCategory.EMOTIONAL,
}

# Preference multipliers by mood, in PREFERENCE_FIELDS order.
_MOOD_MULTIPLIERS = ensure_exhaustive(
    {
        ViewingMood.CASUAL: np.array([0.8, 1.2, 1.0, 1.0, 1.2, 0.7, 0.8]),
        ViewingMood.ENGAGED: np.ones(len(PREFERENCE_FIELDS)),
        ViewingMood.INTENSE: np.array([1.3, 0.7, 1.0, 1.0, 0.9, 1.3, 1.2]),
        ViewingMood.DISCOVERY: np.array([1.0, 0.9, 1.2, 1.2, 1.1, 1.0, 1.0]),
    },
    ViewingMood,
)

# Spoiler-free viewers only learn that an event suits them, never how it played.
_SAFE_PREFERENCE_TEXT = "Matches your viewing preferences"

# Reason text per preference at each spoiler level (safe, mild, full).
_PREFERENCE_TEXT: dict[str, tuple[str, str, str]] = {
    "nail_biters": (
        _SAFE_PREFERENCE_TEXT,
        "A nail-biter you'll love",
        "A nail-biter you'll love",
    ),
    "dominance": (
        _SAFE_PREFERENCE_TEXT,
        "A commanding performance",
        "A dominant win",
    ),
    "upsets": (
        _SAFE_PREFERENCE_TEXT,
        "Underdog story",
        "An upset you'll love",
    ),
    "historic_moments": (
        _SAFE_PREFERENCE_TEXT,
        "Could be historic",
        "A historic result",
    ),
    "skill_display": (
        _SAFE_PREFERENCE_TEXT,
        "A masterclass on display",
        "A masterclass on display",
    ),
    "intensity": (
        _SAFE_PREFERENCE_TEXT,
        "Intense from start to finish",
        "Intense from start to finish",
    ),
    "drama": (
        _SAFE_PREFERENCE_TEXT,
        "Dramatic twists throughout",
        "Dramatic twists throughout",
    ),
}

# Leading summary phrase by dominant factor (mild and above only).
_SUMMARY_LEAD = ensure_exhaustive(
    {
        EmotionalDimension.SUSPENSE: "Edge-of-your-seat finish",
        EmotionalDimension.STAKES: "Everything on the line",
        EmotionalDimension.VOLATILITY: "Wild ride from start to finish",
        EmotionalDimension.UNDERDOG: "David vs Goliath matchup",
        EmotionalDimension.TRANSCENDENCE: "One for the history books",
    },
    EmotionalDimension,
)

_LEVEL_INDEX = ensure_exhaustive(
    {SpoilerLevel.SAFE: 0, SpoilerLevel.MILD: 1, SpoilerLevel.FULL: 2},
    SpoilerLevel,
)

# Reason thresholds
_ALIGNMENT_REASON_MIN = 60.0
_UNIVERSAL_REASON_MIN = 75.0
_STAKES_REASON_MIN = 80.0
_HISTORIC_REASON_MIN = 70.0
_TRENDING_REASON_MIN = 70.0
_SUMMARY_LEAD_MIN = 75.0


def _pick(texts: tuple[str, str, str], tolerance: SpoilerTolerance) -> str:
    return texts[_LEVEL_INDEX[allowed_level(tolerance)]]


def _tag_evidence(tags: AggregatedTags, category: TagCategory | None = None) -> float:
    return float(
        sum(t.weight * t.confidence / 100 for t in tags.tags if category in (None, t.category))
    )


def _saturate(evidence: float, scale: float = 2.0) -> float:
    """Map unbounded tag evidence onto [0, 100)."""
    return float(100.0 * (1.0 - np.exp(-evidence / scale)))


class PriorityCalculator:
    """Scores one event for one viewer and assembles ranked lists.

    Composite score:

    =====================  ======
    Term                   Weight
    =====================  ======
    Intrinsic quality      0.40
    Follow relevance       0.25
    Preference alignment   0.20
    Trending               0.05
    Time fit               0.10
    =====================  ======

    Intrinsic quality is the event's emotional magnitude, weighted per
    dimension for the viewer's comprehension of the sport and blended with
    the aggregated tag signal.  Preference alignment is a weighted dot
    product of the viewer's seven preference levels against matching
    profile and tag signals.

    Every reason, tag and summary surfaced is gated by the viewer's spoiler
    tolerance.  Events whose analysis confidence is below
    ``degraded_confidence_threshold`` get a conservative default priority
    instead of a full computation.

    Stateless; safe to share between threads.

    Args:
        weights: Composite weights.  Defaults to :class:`PriorityWeights`.
        degraded_confidence_threshold: Minimum analysis confidence (0-100)
            for a full computation.
        max_workers: Default thread count for :meth:`compute_priorities`.
    """

    def __init__(
        self,
        weights: PriorityWeights | None = None,
        degraded_confidence_threshold: float = _DEFAULT_DEGRADED_THRESHOLD,
        max_workers: int | None = None,
    ) -> None:
        if not 0 <= degraded_confidence_threshold <= 100:
            raise ValidationError(
                "degraded_confidence_threshold",
                f"must be in [0, 100], got {degraded_confidence_threshold!r}",
            )
        self._weights = weights or PriorityWeights()
        self._degraded_threshold = degraded_confidence_threshold
        self._max_workers = max_workers

    # ------------------------------------------------------------------
    # Single event
    # ------------------------------------------------------------------

    def compute_priority(self, priority_input: PriorityCalculationInput) -> EventPriority:
        """Score, tier and explain one event for one viewer.

        Args:
            priority_input: Event analysis, tags, metadata and the viewer's
                preferences.

        Returns:
            The event's priority.  Degraded when analysis confidence is
            below the configured threshold.
        """
        if priority_input.analysis.confidence < self._degraded_threshold:
            logger.debug(
                "Event %s analysis confidence %.0f below %.0f; using default priority.",
                priority_input.event_id,
                priority_input.analysis.confidence,
                self._degraded_threshold,
            )
            return self.create_default_priority(priority_input)

        context = priority_input.effective_context
        tolerance = context.spoiler_tolerance
        breakdown, top_preference = self._score(priority_input, context)
        tier = get_priority_tier(breakdown.composite)
        reasons = self._build_reasons(priority_input, breakdown, top_preference, tolerance)
        tags = gate_tags(priority_input.tags.tags, tolerance)
        summary = self._build_summary(priority_input.analysis.profile, reasons, tolerance)

        logger.debug(
            "Event %s for %s: composite=%.1f tier=%s",
            priority_input.event_id,
            priority_input.preferences.user_id,
            breakdown.composite,
            tier.value,
        )
        return EventPriority(
            event_id=priority_input.event_id,
            tier=tier,
            score_breakdown=breakdown,
            reasons=reasons,
            spoiler_level=_spoiler_level(reasons, tags, summary),
            sport=priority_input.sport,
            league=priority_input.league,
            duration=priority_input.duration,
            emotional_profile=priority_input.analysis.profile,
            tags=tags,
            summary=summary,
        )

    def create_default_priority(
        self,
        priority_input: PriorityCalculationInput,
        reason: str = "Limited data available for this event",
    ) -> EventPriority:
        """Conservative priority for an event whose analysis cannot be trusted.

        Always tier ``highlights`` with composite exactly at the highlights
        threshold, flagged ``degraded`` and carrying a single degraded
        reason.  Relevance is still computed so follows keep their place
        in the ordering.
        """
        context = priority_input.effective_context
        preferences = priority_input.preferences
        relevance = calculate_follow_relevance(
            preferences.follows,
            priority_input.participants,
            priority_input.league,
            priority_input.sport,
        )
        breakdown = ScoreBreakdown(
            relevance=relevance,
            comprehension=get_sport_comprehension(
                preferences.sport_familiarity, priority_input.sport
            ),
            direct_follow=has_direct_follow(
                preferences.follows, priority_input.participants, priority_input.league
            ),
            composite=_DEGRADED_COMPOSITE,
        )
        reasons = (
            PriorityReason(
                type=PriorityReasonType.DEGRADED,
                text=reason,
                contribution=_DEGRADED_COMPOSITE,
            ),
        )
        tags = gate_tags(priority_input.tags.tags, context.spoiler_tolerance)
        return EventPriority(
            event_id=priority_input.event_id,
            tier=PriorityTier.HIGHLIGHTS,
            score_breakdown=breakdown,
            reasons=reasons,
            spoiler_level=_spoiler_level(reasons, tags, reason),
            sport=priority_input.sport,
            league=priority_input.league,
            duration=priority_input.duration,
            emotional_profile=priority_input.analysis.profile,
            tags=tags,
            summary=reason,
            degraded=True,
        )

    @staticmethod
    def quick_priority(
        event_id: str, profile: EmotionalProfile, is_followed: bool = False
    ) -> EventPriority:
        """Rough priority from a profile alone, for previews without a viewer."""
        base = (
            profile.suspense * 0.30
            + profile.stakes * 0.25
            + profile.volatility * 0.20
            + profile.underdog * 0.15
            + profile.transcendence * 0.10
        )
        composite = clamp_score(base + (30.0 if is_followed else 0.0))
        return EventPriority(
            event_id=event_id,
            tier=get_priority_tier(composite),
            score_breakdown=ScoreBreakdown(
                intrinsic_quality=clamp_score(base),
                direct_follow=is_followed,
                composite=composite,
            ),
            reasons=(),
            spoiler_level=SpoilerLevel.SAFE,
            emotional_profile=profile,
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def compute_priorities(
        self,
        inputs: Sequence[PriorityCalculationInput],
        max_workers: int | None = None,
    ) -> list[EventPriority]:
        """Score many events in parallel.  Output order matches *inputs*."""
        if not inputs:
            return []
        with ThreadPoolExecutor(
            max_workers=max_workers or self._max_workers,
            thread_name_prefix="priority",
        ) as pool:
            return list(pool.map(self.compute_priority, inputs))

    def build_list(
        self,
        priorities: Sequence[EventPriority],
        filters: PriorityFilters | None = None,
        context: ViewingContext | None = None,
        user_id: str = "",
        now: datetime | None = None,
    ) -> PrioritizedEventList:
        """Filter, order and summarise computed priorities.

        Events in the viewing context's ``already_watched`` list are always
        removed; ``filters.already_watched`` is removed too unless
        ``filters.exclude_watched`` is off.  The remaining events are sorted
        by composite score, then relevance (both descending), then event ID.

        Args:
            priorities: Output of :meth:`compute_priority` for one viewer.
            filters: Optional list filters.
            context: The viewing context whose watched list applies.
            user_id: The viewer, echoed in the result.
            now: Timestamp for ``generated_at``.

        Returns:
            The ordered list and its summary.
        """
        filters = filters or PriorityFilters()
        watched = set(context.already_watched if context else ())
        if filters.exclude_watched:
            watched.update(filters.already_watched)

        unwatched = [p for p in priorities if p.event_id not in watched]
        excluded = len(priorities) - len(unwatched)
        kept = [p for p in unwatched if _passes(p, filters)]
        kept.sort(key=lambda p: (-p.composite, -p.relevance, p.event_id))

        return PrioritizedEventList(
            user_id=user_id,
            events=tuple(kept),
            summary=_summarise(kept, excluded),
            generated_at=now or datetime.now(timezone.utc),
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def _score(
        self, priority_input: PriorityCalculationInput, context: ViewingContext
    ) -> tuple[ScoreBreakdown, str | None]:
        preferences = priority_input.preferences
        profile = priority_input.analysis.profile
        tags = priority_input.tags

        relevance = calculate_follow_relevance(
            preferences.follows,
            priority_input.participants,
            priority_input.league,
            priority_input.sport,
        )
        comprehension = get_sport_comprehension(preferences.sport_familiarity, priority_input.sport)
        intrinsic = intrinsic_quality(profile, tags, comprehension)
        alignment, top_preference = preference_alignment(
            profile, tags, preferences.emotional_preferences, context.current_mood
        )
        trending = float(priority_input.community_engagement)
        fit = time_fit(priority_input.duration, context.available_time)

        w = self._weights
        composite = clamp_score(
            w.intrinsic_quality * intrinsic
            + w.relevance * relevance
            + w.preference_alignment * alignment
            + w.trending * trending
            + w.time_fit * fit
        )
        breakdown = ScoreBreakdown(
            relevance=clamp_score(relevance),
            preference_alignment=clamp_score(alignment),
            intrinsic_quality=clamp_score(intrinsic),
            trending=clamp_score(trending),
            time_fit=clamp_score(fit),
            comprehension=comprehension,
            direct_follow=has_direct_follow(
                preferences.follows, priority_input.participants, priority_input.league
            ),
            composite=composite,
        )
        return breakdown, top_preference

    # ------------------------------------------------------------------
    # Explanations
    # ------------------------------------------------------------------

    def _build_reasons(
        self,
        priority_input: PriorityCalculationInput,
        breakdown: ScoreBreakdown,
        top_preference: str | None,
        tolerance: SpoilerTolerance,
    ) -> tuple[PriorityReason, ...]:
        w = self._weights
        profile = priority_input.analysis.profile
        dimension_weights = _DIMENSION_WEIGHTS[breakdown.comprehension]
        reasons: list[PriorityReason] = []

        if breakdown.relevance > 0:
            names = followed_names(
                priority_input.preferences.follows, priority_input.participants
            )
            if names:
                text = f"Your team{'s' if len(names) > 1 else ''}: {', '.join(names)}"
            elif breakdown.direct_follow:
                text = "From a league you follow"
            else:
                text = "A sport you follow"
            reasons.append(
                PriorityReason(PriorityReasonType.FOLLOW, text, w.relevance * breakdown.relevance)
            )

        if top_preference and breakdown.preference_alignment >= _ALIGNMENT_REASON_MIN:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.PREFERENCE_MATCH,
                    _pick(_PREFERENCE_TEXT[top_preference], tolerance),
                    w.preference_alignment * breakdown.preference_alignment,
                )
            )

        if breakdown.intrinsic_quality >= _UNIVERSAL_REASON_MIN:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.UNIVERSAL,
                    _pick(
                        (
                            "Highly rated event",
                            "Exceptional, thrilling event",
                            "Exceptional, thrilling event",
                        ),
                        tolerance,
                    ),
                    w.intrinsic_quality * breakdown.intrinsic_quality,
                )
            )

        if profile.stakes >= _STAKES_REASON_MIN:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.UNIVERSAL,
                    "High-stakes matchup",
                    w.intrinsic_quality * dimension_weights[1] * profile.stakes,
                )
            )

        if profile.transcendence >= _HISTORIC_REASON_MIN:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.HISTORIC,
                    _pick(
                        (
                            "A big occasion",
                            "Potential instant classic",
                            "Potential instant classic",
                        ),
                        tolerance,
                    ),
                    w.intrinsic_quality * dimension_weights[4] * profile.transcendence,
                )
            )

        if breakdown.trending >= _TRENDING_REASON_MIN:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.TRENDING,
                    "Everyone's talking about it",
                    w.trending * breakdown.trending,
                )
            )

        rivalry = next(
            (t for t in priority_input.tags.tags if "rivalry" in t.name),
            None,
        )
        if rivalry is not None:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.RIVALRY,
                    "Rivalry game",
                    w.intrinsic_quality * dimension_weights[1] * rivalry.confidence,
                )
            )

        context = priority_input.effective_context
        if context.available_time is not None and breakdown.time_fit >= 100:
            reasons.append(
                PriorityReason(
                    PriorityReasonType.TIME_FIT,
                    "Fits in your available time",
                    w.time_fit * breakdown.time_fit,
                )
            )

        visible = [
            PriorityReason(r.type, r.text, round(r.contribution, 1))
            for r in reasons
            if not contains_spoiler(r.text, tolerance)
        ]
        visible.sort(key=lambda r: (-r.contribution, r.type.value, r.text))
        return tuple(visible)

    @staticmethod
    def _build_summary(
        profile: EmotionalProfile,
        reasons: Sequence[PriorityReason],
        tolerance: SpoilerTolerance,
    ) -> str:
        parts: list[str] = []
        if allowed_level(tolerance) != SpoilerLevel.SAFE:
            dominant = get_dominant_factor(profile)
            if profile.get(dominant) >= _SUMMARY_LEAD_MIN:
                parts.append(_SUMMARY_LEAD[dominant])
        for reason in reasons:
            if len(parts) >= 2:
                break
            if reason.text not in parts:
                parts.append(reason.text)
        summary = _SUMMARY_SEPARATOR.join(parts) or "Worth checking out"
        if contains_spoiler(summary, tolerance):
            return "Worth checking out"
        return summary


# ---------------------------------------------------------------------------
# Score terms
# ---------------------------------------------------------------------------


def _profile_vector(profile: EmotionalProfile) -> np.ndarray:
    return np.array([profile.get(d) for d in EmotionalDimension], dtype=float)


def intrinsic_quality(
    profile: EmotionalProfile,
    tags: AggregatedTags,
    comprehension: ComprehensionLevel,
) -> float:
    """Comprehension-weighted emotional magnitude, blended with tag evidence.

    Events without tags are scored on their profile alone.
    """
    profile_part = float(np.dot(_DIMENSION_WEIGHTS[comprehension], _profile_vector(profile)))
    if not tags.tags:
        return profile_part
    share = _TAG_SIGNAL_SHARE[comprehension]
    return (1 - share) * profile_part + share * _saturate(_tag_evidence(tags))


def _preference_signals(profile: EmotionalProfile, tags: AggregatedTags) -> np.ndarray:
    """0-100 signal per preference, in PREFERENCE_FIELDS order."""
    s, k, v, u, t = _profile_vector(profile)
    from_profile = np.array(
        [
            s,                                  # nail_biters
            (100 - v) * 0.5 + (100 - s) * 0.5,  # dominance: one-sided and steady
            u,                                  # upsets
            t,                                  # historic_moments
            (t + k) / 2,                        # skill_display
            (k + v) / 2,                        # intensity
            (v + s) / 2,                        # drama
        ]
    )
    if not tags.tags:
        return from_profile
    from_tags = np.array(
        [
            _saturate(_tag_evidence(tags, _PREFERENCE_TAG_CATEGORY[name]), scale=1.0)
            for name in PREFERENCE_FIELDS
        ]
    )
    return _PROFILE_SIGNAL_SHARE * from_profile + (1 - _PROFILE_SIGNAL_SHARE) * from_tags


def preference_alignment(
    profile: EmotionalProfile,
    tags: AggregatedTags,
    preferences: EmotionalPreferences,
    mood: ViewingMood | None = None,
) -> tuple[float, str | None]:
    """Weighted dot product of preference levels against event signals.

    Args:
        profile: The event's emotional profile.
        tags: The event's aggregated tags.
        preferences: The viewer's 0-5 preference levels.
        mood: Optional current mood; scales the preference vector.

    Returns:
        ``(alignment, top_preference)``.  Alignment is in [0, 100]; a viewer
        with every preference at 0 gets a neutral 50 and no top preference.
    """
    levels = np.array(preferences.as_list(), dtype=float)
    if mood is not None:
        levels = levels * _MOOD_MULTIPLIERS[mood]
    total = levels.sum()
    if total <= 0:
        return _NEUTRAL_ALIGNMENT, None
    signals = _preference_signals(profile, tags)
    contributions = levels * signals
    top = PREFERENCE_FIELDS[int(np.argmax(contributions))]
    return float(contributions.sum() / total), top


def time_fit(duration: float | None, available_time: float | None) -> float:
    """100 when the event fits the available time, proportional otherwise."""
    if duration is None or available_time is None:
        return _UNKNOWN_TIME_FIT
    if duration <= available_time:
        return 100.0
    return 100.0 * available_time / duration


# ---------------------------------------------------------------------------
# List helpers
# ---------------------------------------------------------------------------


def _spoiler_level(
    reasons: Sequence[PriorityReason], tags: Sequence[EventTag], summary: str
) -> SpoilerLevel:
    levels = [classify_text(r.text) for r in reasons]
    levels.extend(classify_tag(t) for t in tags)
    levels.append(classify_text(summary))
    return highest_level(levels)


def _passes(priority: EventPriority, filters: PriorityFilters) -> bool:
    if filters.sports and priority.sport not in filters.sports:
        return False
    if filters.leagues and priority.league not in filters.leagues:
        return False
    if filters.min_tier is not None and priority.tier.rank < filters.min_tier.rank:
        return False
    if filters.tags:
        wanted = {normalize_tag(t) for t in filters.tags}
        if not wanted.intersection(t.name for t in priority.tags):
            return False
    if filters.followed_only and not priority.score_breakdown.direct_follow:
        return False
    if (
        filters.max_duration is not None
        and priority.duration is not None
        and priority.duration > filters.max_duration
    ):
        return False
    if (
        filters.min_comprehension is not None
        and priority.score_breakdown.comprehension.rank < filters.min_comprehension.rank
    ):
        return False
    return True


def _summarise(priorities: Sequence[EventPriority], excluded_watched: int) -> PriorityListSummary:
    tier_counts = {tier: 0 for tier in PriorityTier}
    reason_counts: Counter[PriorityReasonType] = Counter()
    tag_counts: Counter[str] = Counter()
    sports: dict[str, list[float]] = {}
    for priority in priorities:
        tier_counts[priority.tier] += 1
        reason_counts.update(r.type for r in priority.reasons)
        tag_counts.update(t.name for t in priority.tags)
        sports.setdefault(priority.sport, []).append(priority.composite)

    must_profiles = [
        p.emotional_profile
        for p in priorities
        if p.tier == PriorityTier.MUST and p.emotional_profile is not None
    ]
    top_factors: tuple[tuple[EmotionalDimension, float], ...] = ()
    if must_profiles:
        means = np.mean([_profile_vector(p) for p in must_profiles], axis=0)
        ranked = sorted(
            zip(EmotionalDimension, means),
            key=lambda item: -item[1],
        )
        top_factors = tuple((d, round(float(m), 1)) for d, m in ranked)

    return PriorityListSummary(
        total_events=len(priorities),
        tier_counts=tier_counts,
        top_reason_types=tuple(
            sorted(reason_counts.items(), key=lambda item: (-item[1], item[0].value))[
                :_TOP_REASON_TYPES
            ]
        ),
        top_tags=tuple(sorted(tag_counts.items(), key=lambda item: (-item[1], item[0]))[:_TOP_TAGS]),
        top_emotional_factors=top_factors,
        sport_breakdown=tuple(
            (sport, len(scores), round(sum(scores) / len(scores), 1))
            for sport, scores in sorted(sports.items())
        ),
        degraded_count=sum(1 for p in priorities if p.degraded),
        excluded_watched=excluded_watched,
    )
