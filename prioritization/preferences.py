"""Viewer preference helpers: follow relevance, comprehension and partial updates."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import fields, replace
from datetime import datetime, timezone

from prioritization.errors import ValidationError
from prioritization.models import (
    PREFERENCE_FIELDS,
    ComprehensionLevel,
    FollowType,
    SportFamiliarity,
    UserFollow,
    UserPreferences,
    UserPreferencesInput,
    ViewingContext,
)

logger = logging.getLogger(__name__)

# Points per unit of follow strength (1-5) by how directly the follow matches.
_PARTICIPANT_POINTS = 20
_LEAGUE_POINTS = 10
_SPORT_POINTS = 2

_MAX_RELEVANCE = 100.0

_PARTICIPANT_FOLLOWS = (FollowType.TEAM, FollowType.PLAYER)
_LEAGUE_FOLLOWS = (FollowType.LEAGUE, FollowType.COMPETITION)


def calculate_follow_relevance(
    follows: Sequence[UserFollow],
    participants: Sequence[str],
    league: str,
    sport: str,
) -> float:
    """Score how connected the viewer is to an event through their follows.

    Each follow contributes once, at its most direct match:

    * team/player among the participants: ``20 × strength``
    * league/competition equal to the event's league: ``10 × strength``
    * anything else in the same sport: ``2 × strength``

    Args:
        follows: The viewer's follows.
        participants: Team/player IDs taking part in the event.
        league: The event's league ID.
        sport: The event's sport.

    Returns:
        Relevance in [0, 100].  Monotonically non-decreasing in follow
        strength; a single strength-5 direct follow reaches the cap.
    """
    relevance = 0
    for follow in follows:
        if follow.type in _PARTICIPANT_FOLLOWS and follow.id in participants:
            relevance += follow.follow_strength * _PARTICIPANT_POINTS
        elif follow.type in _LEAGUE_FOLLOWS and follow.id == league:
            relevance += follow.follow_strength * _LEAGUE_POINTS
        elif follow.sport == sport:
            relevance += follow.follow_strength * _SPORT_POINTS
    return float(min(_MAX_RELEVANCE, relevance))


def has_direct_follow(
    follows: Sequence[UserFollow], participants: Sequence[str], league: str
) -> bool:
    """True when a followed team, player, league or competition is involved."""
    return any(
        (f.type in _PARTICIPANT_FOLLOWS and f.id in participants)
        or (f.type in _LEAGUE_FOLLOWS and f.id == league)
        for f in follows
    )


def followed_names(follows: Sequence[UserFollow], participants: Sequence[str]) -> list[str]:
    """Names of followed teams/players taking part, strongest follow first."""
    matched = [f for f in follows if f.type in _PARTICIPANT_FOLLOWS and f.id in participants]
    matched.sort(key=lambda f: (-f.follow_strength, f.name))
    return [f.name for f in matched]


def get_sport_comprehension(
    familiarity: Sequence[SportFamiliarity], sport: str
) -> ComprehensionLevel:
    """Return the viewer's comprehension of *sport*, defaulting to novice."""
    for entry in familiarity:
        if entry.sport == sport:
            return entry.comprehension_level
    return ComprehensionLevel.NOVICE


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


def apply_preferences_update(
    preferences: UserPreferences,
    update: UserPreferencesInput,
    now: datetime | None = None,
) -> UserPreferences:
    """Return a copy of *preferences* with *update* applied.

    ``follows`` and ``sport_familiarity`` replace the stored lists when
    given; ``emotional_preferences`` and ``viewing_context`` are merged field
    by field.  The input object is never mutated.

    Args:
        preferences: Current stored preferences.
        update: The partial update.
        now: Timestamp for ``last_updated`` (defaults to the current UTC time).

    Raises:
        ValidationError: If the update names an unknown field or carries an
            out-of-range value.
    """
    follows = list(preferences.follows)
    if update.follows is not None:
        stamp = now or datetime.now(timezone.utc)
        follows = [
            f if f.followed_since else replace(f, followed_since=stamp) for f in update.follows
        ]

    sport_familiarity = list(preferences.sport_familiarity)
    if update.sport_familiarity is not None:
        sport_familiarity = list(update.sport_familiarity)

    emotional = preferences.emotional_preferences
    if update.emotional_preferences:
        unknown = set(update.emotional_preferences) - set(PREFERENCE_FIELDS)
        if unknown:
            raise ValidationError(
                "emotional_preferences", f"unknown fields {sorted(unknown)}"
            )
        emotional = replace(emotional, **update.emotional_preferences)

    context = preferences.viewing_context
    if update.viewing_context:
        allowed = {f.name for f in fields(ViewingContext)}
        unknown = set(update.viewing_context) - allowed
        if unknown:
            raise ValidationError("viewing_context", f"unknown fields {sorted(unknown)}")
        context = replace(context or ViewingContext(), **update.viewing_context)

    logger.debug("Applied preferences update for %s.", preferences.user_id)
    return UserPreferences(
        user_id=preferences.user_id,
        follows=follows,
        sport_familiarity=sport_familiarity,
        emotional_preferences=emotional,
        viewing_context=context,
        last_updated=now or datetime.now(timezone.utc),
    )
