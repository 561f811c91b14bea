"""Tag aggregation: merges algorithmic, user and curator tags into one set."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from prioritization.errors import TagConflictError, ValidationError
from prioritization.models import (
    AggregatedTags,
    CuratorVerificationInput,
    EmotionalDimension,
    EmotionalProfile,
    EventTag,
    TagCategory,
    TagSource,
    UserTagInput,
)

logger = logging.getLogger(__name__)

# Evidence weights
_ALGORITHMIC_BASE_WEIGHT = 1.0
_USER_WEIGHT_SCALE = 0.5          # × log2(1 + distinct users)
_CURATOR_MULTIPLIER = 2.0         # applied to accumulated evidence on approval
_CURATOR_BASE_WEIGHT = 1.5        # added on approval
_CURATOR_REJECTION_FACTOR = 0.25  # evidence retained on rejection

_CURATOR_APPROVE_CONFIDENCE = 95.0
_CURATOR_REJECT_CONFIDENCE = 5.0

# Confidence scaling by number of independent agreeing sources.
_CORROBORATION: dict[int, float] = {1: 0.6, 2: 0.85, 3: 1.0}

_ALGORITHMIC_BASE_CONFIDENCE = 70.0

_PRECISION = 4

# Tag pairs that cannot both describe the same event, and the category both
# sides live in.
_CONTRADICTIONS: tuple[tuple[str, str, TagCategory], ...] = (
    ("comeback", "wire-to-wire", TagCategory.OUTCOME),
    ("instant-classic", "forgettable", TagCategory.QUALITY),
    ("legendary", "forgettable", TagCategory.QUALITY),
    ("masterclass", "sloppy", TagCategory.QUALITY),
    ("nail-biter", "boring", TagCategory.EMOTIONAL),
    ("nail-biter", "snoozer", TagCategory.EMOTIONAL),
    ("thriller", "boring", TagCategory.EMOTIONAL),
    ("upset", "blowout", TagCategory.OUTCOME),
)

_ANTONYMS = frozenset(frozenset((first, second)) for first, second, _ in _CONTRADICTIONS)

_CATEGORY_KEYWORDS: tuple[tuple[TagCategory, tuple[str, ...]], ...] = (
    (
        TagCategory.EMOTIONAL,
        ("nail-biter", "thriller", "heart", "rollercoaster", "wild", "intense",
         "dramatic", "exciting", "tense", "edge-of-seat"),
    ),
    (
        TagCategory.OUTCOME,
        ("upset", "comeback", "blowout", "sweep", "shutout", "overtime", "winner"),
    ),
    (
        TagCategory.CONTEXT,
        ("rivalry", "playoff", "final", "championship", "derby", "classic-matchup",
         "rematch", "david", "stakes"),
    ),
    (
        TagCategory.QUALITY,
        ("masterclass", "dominant", "legendary", "instant-classic", "all-timer",
         "sloppy", "boring", "forgettable"),
    ),
    (
        TagCategory.MOMENT,
        ("buzzer", "walk-off", "photo-finish", "hole-in-one", "hat-trick",
         "record", "milestone"),
    ),
)


@dataclass(frozen=True)
class _TagRule:
    name: str
    category: TagCategory
    minimums: dict[EmotionalDimension, float] = field(default_factory=dict)
    maximums: dict[EmotionalDimension, float] = field(default_factory=dict)


_S = EmotionalDimension.SUSPENSE
_K = EmotionalDimension.STAKES
_V = EmotionalDimension.VOLATILITY
_U = EmotionalDimension.UNDERDOG
_T = EmotionalDimension.TRANSCENDENCE

_ALGORITHMIC_RULES: tuple[_TagRule, ...] = (
    _TagRule("nail-biter", TagCategory.EMOTIONAL, {_S: 80}),
    _TagRule("close-finish", TagCategory.EMOTIONAL, {_S: 65}),
    _TagRule("thriller", TagCategory.EMOTIONAL, {_S: 75, _V: 60}),
    _TagRule("high-stakes", TagCategory.CONTEXT, {_K: 80}),
    _TagRule("playoff-atmosphere", TagCategory.CONTEXT, {_K: 70}),
    _TagRule("must-win", TagCategory.CONTEXT, {_K: 85}),
    _TagRule("rollercoaster", TagCategory.EMOTIONAL, {_V: 80}),
    _TagRule("momentum-swings", TagCategory.EMOTIONAL, {_V: 65}),
    _TagRule("wild-game", TagCategory.EMOTIONAL, {_V: 75, _S: 60}),
    _TagRule("upset", TagCategory.OUTCOME, {_U: 80}),
    _TagRule("cinderella-story", TagCategory.OUTCOME, {_U: 85, _K: 70}),
    _TagRule("david-vs-goliath", TagCategory.CONTEXT, {_U: 60}),
    _TagRule("instant-classic", TagCategory.QUALITY, {_T: 85}),
    _TagRule("historic", TagCategory.MOMENT, {_T: 80}),
    _TagRule("legendary", TagCategory.QUALITY, {_T: 90, _S: 70}),
    _TagRule("all-timer", TagCategory.QUALITY, {_T: 95}),
    _TagRule("comeback", TagCategory.OUTCOME, {_V: 70, _S: 65}),
    _TagRule("dominant-performance", TagCategory.QUALITY, {_K: 50}, {_V: 30}),
    _TagRule("masterclass", TagCategory.QUALITY, {_T: 60}, {_V: 25}),
    _TagRule("heart-stopper", TagCategory.EMOTIONAL, {_S: 85, _K: 70}),
    _TagRule("barnburner", TagCategory.EMOTIONAL, {_V: 75, _S: 70}),
)


def _known_categories() -> dict[str, TagCategory]:
    """Category of every tag name the aggregator itself knows about.

    Raises:
        TypeError: If an antonym pair disagrees with a rule's category.
    """
    known = {rule.name: rule.category for rule in _ALGORITHMIC_RULES}
    for first, second, category in _CONTRADICTIONS:
        for name in (first, second):
            if known.setdefault(name, category) is not category:
                raise TypeError(f"{name!r} is {known[name].value}, not {category.value}")
    return known


_KNOWN_CATEGORIES = _known_categories()


@dataclass
class _Evidence:
    """Everything known about one ``(name, category)`` group."""

    algorithmic_confidence: float | None = None
    user_ids: set[str] = field(default_factory=set)
    verdicts: dict[str, bool] = field(default_factory=dict)  # curator -> latest verdict

    @property
    def approvals(self) -> int:
        return sum(1 for v in self.verdicts.values() if v)

    @property
    def rejections(self) -> int:
        return sum(1 for v in self.verdicts.values() if not v)


class TagAggregator:
    """Merges tags from three trust sources into one weighted tag set.

    Weight accumulation per ``(name, category)`` group:

    ===========  ============================================================
    Source       Contribution
    ===========  ============================================================
    Algorithmic  ``1.0 × confidence / 100``
    User         ``0.5 × log2(1 + distinct users)`` (diminishing returns)
    Curator      net approval: ``evidence × 2.0 + 1.5``;
                 net rejection: ``evidence × 0.25``
    ===========  ============================================================

    Confidence is the weight-averaged confidence of each contributing
    source, scaled by how many *independent* sources agree, so one very
    active source never looks like consensus.  Contradictory tags in the
    same category are both kept; their confidences are re-weighted against
    each other and the conflict is recorded in
    :attr:`~prioritization.models.AggregatedTags.notes`.

    Stateless and deterministic: the same inputs always produce identical
    output.
    """

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def aggregate(
        self,
        algorithmic_tags: Sequence[EventTag],
        user_tags: Sequence[UserTagInput] = (),
        curator_verifications: Sequence[CuratorVerificationInput] = (),
        event_id: str | None = None,
    ) -> AggregatedTags:
        """Fold every known tag input for one event into :class:`AggregatedTags`.

        Args:
            algorithmic_tags: Tags generated from the event's profile.
            user_tags: Community submissions.  One vote per user per tag.
            curator_verifications: Curator verdicts; each curator's last
                verdict on a tag wins.
            event_id: The event.  Inferred from the inputs when omitted.

        Returns:
            Deduplicated tags sorted by descending weight.

        Raises:
            ValidationError: If inputs reference different events or a tag
                name normalises to nothing.
        """
        event_id = self._resolve_event_id(event_id, user_tags, curator_verifications)
        groups: dict[tuple[str, TagCategory], _Evidence] = {}

        for tag in algorithmic_tags:
            key = (normalize_tag(tag.name), tag.category)
            evidence = groups.setdefault(key, _Evidence())
            if (
                evidence.algorithmic_confidence is None
                or tag.confidence > evidence.algorithmic_confidence
            ):
                evidence.algorithmic_confidence = tag.confidence

        for submission in user_tags:
            name = normalize_tag(submission.tag)
            key = (name, submission.category or infer_category(name))
            groups.setdefault(key, _Evidence()).user_ids.add(submission.user_id)

        for verification in curator_verifications:
            name = normalize_tag(verification.tag)
            key = (name, verification.category or infer_category(name))
            evidence = groups.setdefault(key, _Evidence())
            evidence.verdicts[verification.curator_id] = verification.verified

        merged: dict[tuple[str, TagCategory], EventTag] = {}
        total_user_tags = 0
        for key in sorted(groups, key=_key_order):
            evidence = groups[key]
            total_user_tags += len(evidence.user_ids)
            tag = self._merge_group(key, evidence)
            if tag is not None:
                merged[key] = tag

        notes = self._resolve_conflicts(merged)

        tags = sorted(merged.values(), key=lambda t: (-t.weight, t.name, t.category.value))
        confidence = (
            float(np.average([t.confidence for t in tags], weights=[t.weight for t in tags]))
            if tags
            else 0.0
        )
        return AggregatedTags(
            event_id=event_id,
            tags=tuple(tags),
            confidence=round(confidence, _PRECISION),
            total_user_tags=total_user_tags,
            curator_verified_count=sum(1 for t in tags if t.curator_verified),
            notes=tuple(notes),
        )

    def generate_algorithmic_tags(self, profile: EmotionalProfile) -> list[EventTag]:
        """Derive tags from an emotional profile using the built-in rule table.

        Confidence starts at 70 and rises with how far the profile clears
        each rule's minimums, up to 100.

        Returns:
            Matching tags, most confident first.
        """
        tags: list[EventTag] = []
        for rule in _ALGORITHMIC_RULES:
            if not _matches(profile, rule):
                continue
            confidence = _rule_confidence(profile, rule)
            tags.append(
                EventTag(
                    name=rule.name,
                    category=rule.category,
                    source=TagSource.ALGORITHMIC,
                    weight=round(_ALGORITHMIC_BASE_WEIGHT * confidence / 100, _PRECISION),
                    count=1,
                    confidence=confidence,
                    sources=(TagSource.ALGORITHMIC,),
                )
            )
        tags.sort(key=lambda t: (-t.confidence, t.name))
        return tags

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_event_id(
        event_id: str | None,
        user_tags: Sequence[UserTagInput],
        curator_verifications: Sequence[CuratorVerificationInput],
    ) -> str:
        referenced = {t.event_id for t in user_tags} | {v.event_id for v in curator_verifications}
        if event_id is not None:
            referenced.discard(event_id)
            if referenced:
                raise ValidationError(
                    "event_id", f"inputs reference other events: {sorted(referenced)}"
                )
            return event_id
        if len(referenced) > 1:
            raise ValidationError(
                "event_id", f"inputs reference multiple events: {sorted(referenced)}"
            )
        return next(iter(referenced), "")

    @staticmethod
    def _merge_group(key: tuple[str, TagCategory], evidence: _Evidence) -> EventTag | None:
        """Combine one group's evidence.  Returns ``None`` if nothing asserts it."""
        name, category = key
        weighted_confidences: list[tuple[float, float]] = []
        sources: list[TagSource] = []

        algorithmic_weight = 0.0
        if evidence.algorithmic_confidence is not None:
            algorithmic_weight = _ALGORITHMIC_BASE_WEIGHT * evidence.algorithmic_confidence / 100
            if algorithmic_weight > 0:
                weighted_confidences.append((evidence.algorithmic_confidence, algorithmic_weight))
                sources.append(TagSource.ALGORITHMIC)

        n_users = len(evidence.user_ids)
        user_weight = _USER_WEIGHT_SCALE * math.log2(1 + n_users)
        if n_users:
            weighted_confidences.append((100.0 * (1 - 0.5 ** n_users), user_weight))
            sources.append(TagSource.USER)

        accumulated = algorithmic_weight + user_weight
        net_verdict = evidence.approvals - evidence.rejections
        if net_verdict > 0:
            weight = accumulated * _CURATOR_MULTIPLIER + _CURATOR_BASE_WEIGHT
            weighted_confidences.append((_CURATOR_APPROVE_CONFIDENCE, weight - accumulated))
            sources.append(TagSource.CURATOR)
        elif net_verdict < 0:
            weight = accumulated * _CURATOR_REJECTION_FACTOR
            weighted_confidences.append((_CURATOR_REJECT_CONFIDENCE, accumulated - weight))
        else:
            weight = accumulated

        if weight <= 0:
            return None

        confidences, weights = zip(*weighted_confidences)
        pooled = float(np.average(confidences, weights=weights))
        confidence = pooled * _CORROBORATION[max(1, len(sources))]

        return EventTag(
            name=name,
            category=category,
            source=sources[-1] if sources else TagSource.ALGORITHMIC,
            weight=round(weight, _PRECISION),
            count=(1 if TagSource.ALGORITHMIC in sources else 0) + n_users + evidence.approvals,
            confidence=round(min(100.0, max(0.0, confidence)), _PRECISION),
            sources=tuple(sources),
            curator_verified=net_verdict > 0,
        )

    @staticmethod
    def _resolve_conflicts(merged: dict[tuple[str, TagCategory], EventTag]) -> list[str]:
        """Re-weight contradictory tag pairs in place and return audit notes.

        Each side's confidence becomes the weight-averaged mean of its own
        confidence and the complement of its rival's.
        """
        notes: list[str] = []
        categories = sorted({category for _, category in merged}, key=lambda c: c.value)
        for first, second, _ in _CONTRADICTIONS:
            for category in categories:
                a = merged.get((first, category))
                b = merged.get((second, category))
                if a is None or b is None:
                    continue
                try:
                    check_compatible(a, b)
                except TagConflictError as conflict:
                    logger.info("Resolving tag conflict: %s", conflict)
                    notes.append(str(conflict))
                    total = a.weight + b.weight
                    a_conf = (a.weight * a.confidence + b.weight * (100 - b.confidence)) / total
                    b_conf = (b.weight * b.confidence + a.weight * (100 - a.confidence)) / total
                    merged[a.key] = _with_confidence(a, a_conf)
                    merged[b.key] = _with_confidence(b, b_conf)
        return notes


# ---------------------------------------------------------------------------
# Tag text helpers
# ---------------------------------------------------------------------------


def normalize_tag(tag: str) -> str:
    """Lower-case, hyphenate whitespace and strip anything outside ``[a-z0-9-]``.

    Raises:
        ValidationError: If nothing is left after normalisation.
    """
    normalized = re.sub(r"\s+", "-", tag.lower().strip())
    normalized = re.sub(r"[^a-z0-9-]", "", normalized)
    if not normalized:
        raise ValidationError("tag", f"{tag!r} is empty after normalisation")
    return normalized


def infer_category(tag: str) -> TagCategory:
    """Category for a tag submitted without one.

    Names the aggregator generates or treats as antonyms keep their own
    category, so a user agreeing with an algorithmic tag lands in the same
    group.  Anything else is guessed from keywords, defaulting to emotional.
    """
    normalized = tag.lower()
    if normalized in _KNOWN_CATEGORIES:
        return _KNOWN_CATEGORIES[normalized]
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return category
    return TagCategory.EMOTIONAL


def check_compatible(first: EventTag, second: EventTag) -> None:
    """Raise if two tags contradict each other within one category.

    Raises:
        TagConflictError: If the names form a known antonym pair and the
            categories match.
    """
    if first.category != second.category:
        return
    if frozenset((first.name, second.name)) in _ANTONYMS:
        raise TagConflictError(first.name, second.name, first.category.value)


def _key_order(key: tuple[str, TagCategory]) -> tuple[str, str]:
    return (key[0], key[1].value)


def _with_confidence(tag: EventTag, confidence: float) -> EventTag:
    return EventTag(
        name=tag.name,
        category=tag.category,
        source=tag.source,
        weight=tag.weight,
        count=tag.count,
        confidence=round(min(100.0, max(0.0, confidence)), _PRECISION),
        sources=tag.sources,
        curator_verified=tag.curator_verified,
    )


def _matches(profile: EmotionalProfile, rule: _TagRule) -> bool:
    return all(profile.get(d) >= v for d, v in rule.minimums.items()) and all(
        profile.get(d) <= v for d, v in rule.maximums.items()
    )


def _rule_confidence(profile: EmotionalProfile, rule: _TagRule) -> float:
    if not rule.minimums:
        return _ALGORITHMIC_BASE_CONFIDENCE
    excess = sum(profile.get(d) - v for d, v in rule.minimums.items()) / len(rule.minimums)
    return float(min(100.0, round(_ALGORITHMIC_BASE_CONFIDENCE + excess)))
