"""Spoiler gating: decides which text and tags a viewer may see."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from prioritization.dimensions.base import ensure_exhaustive
from prioritization.models import EventTag, SpoilerLevel, SpoilerTolerance, TagCategory

# Words that reveal a result.  Never shown below "moderate" tolerance.
OUTCOME_TERMS: tuple[str, ...] = (
    "advanced",
    "beat",
    "beats",
    "blowout",
    "champion",
    "champions",
    "clinched",
    "comeback",
    "defeated",
    "eliminated",
    "final score",
    "lost",
    "loss",
    "overtime",
    "record broken",
    "score",
    "scored",
    "shutout",
    "sweep",
    "swept",
    "upset",
    "victory",
    "walk-off",
    "win",
    "winner",
    "wins",
    "won",
)

# Words describing how an event played out, without saying who won.
QUALITATIVE_TERMS: tuple[str, ...] = (
    "all-timer",
    "barnburner",
    "classic",
    "close",
    "close finish",
    "commanding",
    "dramatic",
    "dominant",
    "edge-of-your-seat",
    "exciting",
    "heart-stopper",
    "historic",
    "instant classic",
    "legendary",
    "masterclass",
    "momentum swings",
    "nail-biter",
    "rollercoaster",
    "stunning",
    "thriller",
    "thrilling",
    "tight",
    "unforgettable",
    "wild",
)

_SCORELINE = re.compile(r"\b\d+\s*[-:]\s*\d+\b")

_LEVEL_RANK = ensure_exhaustive(
    {SpoilerLevel.SAFE: 0, SpoilerLevel.MILD: 1, SpoilerLevel.FULL: 2},
    SpoilerLevel,
)

# Most revealing content each tolerance accepts.
_ALLOWED_LEVEL = ensure_exhaustive(
    {
        SpoilerTolerance.NONE: SpoilerLevel.SAFE,
        SpoilerTolerance.MILD: SpoilerLevel.MILD,
        SpoilerTolerance.MODERATE: SpoilerLevel.FULL,
        SpoilerTolerance.FULL: SpoilerLevel.FULL,
    },
    SpoilerTolerance,
)


def _compile(terms: Sequence[str]) -> re.Pattern[str]:
    # Hyphens and spaces are interchangeable so tag names match too.
    alternatives = ("[- ]".join(map(re.escape, re.split(r"[- ]", t))) for t in terms)
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)


_OUTCOME_RE = _compile(OUTCOME_TERMS)
_QUALITATIVE_RE = _compile(QUALITATIVE_TERMS)


def classify_text(text: str) -> SpoilerLevel:
    """Return how much outcome information *text* reveals."""
    if _OUTCOME_RE.search(text) or _SCORELINE.search(text):
        return SpoilerLevel.FULL
    if _QUALITATIVE_RE.search(text):
        return SpoilerLevel.MILD
    return SpoilerLevel.SAFE


def classify_tag(tag: EventTag) -> SpoilerLevel:
    """Outcome-category tags always reveal a result, whatever their name."""
    if tag.category == TagCategory.OUTCOME:
        return SpoilerLevel.FULL
    return classify_text(tag.name)


def allowed_level(tolerance: SpoilerTolerance) -> SpoilerLevel:
    return _ALLOWED_LEVEL[tolerance]


def is_allowed(level: SpoilerLevel, tolerance: SpoilerTolerance) -> bool:
    return _LEVEL_RANK[level] <= _LEVEL_RANK[_ALLOWED_LEVEL[tolerance]]


def contains_spoiler(text: str, tolerance: SpoilerTolerance) -> bool:
    """True when *text* reveals more than *tolerance* accepts."""
    return not is_allowed(classify_text(text), tolerance)


def gate_tags(tags: Iterable[EventTag], tolerance: SpoilerTolerance) -> tuple[EventTag, ...]:
    """Drop tags the viewer should not see, preserving order."""
    return tuple(t for t in tags if is_allowed(classify_tag(t), tolerance))


def highest_level(levels: Iterable[SpoilerLevel]) -> SpoilerLevel:
    """The most revealing of *levels*; ``SAFE`` when empty."""
    return max(levels, key=_LEVEL_RANK.__getitem__, default=SpoilerLevel.SAFE)
