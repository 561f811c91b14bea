"""Tests for viewer preference helpers."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from prioritization.errors import ValidationError
from prioritization.models import (
    ComprehensionLevel,
    SpoilerTolerance,
    SportFamiliarity,
    UserFollow,
    UserPreferences,
    UserPreferencesInput,
    ViewingContext,
    ViewingMood,
)
from prioritization.preferences import (
    apply_preferences_update,
    calculate_follow_relevance,
    followed_names,
    get_sport_comprehension,
    has_direct_follow,
)
from tests.conftest import TS


def follow(id: str, type: str = "team", strength: int = 3, sport: str = "basketball",
           name: str | None = None) -> UserFollow:
    return UserFollow(id=id, type=type, name=name or id, sport=sport, follow_strength=strength)


PARTICIPANTS = ["BOS", "TOR"]


# ---------------------------------------------------------------------------
# Relevance
# ---------------------------------------------------------------------------


class TestFollowRelevance:
    def test_max_strength_team_reaches_cap(self) -> None:
        relevance = calculate_follow_relevance([follow("BOS", strength=5)], PARTICIPANTS, "nba", "basketball")
        assert relevance == 100.0

    def test_league_follow(self) -> None:
        relevance = calculate_follow_relevance(
            [follow("nba", type="league", strength=4)], PARTICIPANTS, "nba", "basketball"
        )
        assert relevance == 40.0

    def test_same_sport_only(self) -> None:
        relevance = calculate_follow_relevance([follow("LAL", strength=3)], PARTICIPANTS, "nba", "basketball")
        assert relevance == 6.0

    def test_other_sport_contributes_nothing(self) -> None:
        relevance = calculate_follow_relevance(
            [follow("ARS", sport="football")], PARTICIPANTS, "nba", "basketball"
        )
        assert relevance == 0.0

    def test_contributions_add_up_and_cap(self) -> None:
        follows = [follow("BOS", strength=3), follow("TOR", strength=3)]
        assert calculate_follow_relevance(follows, PARTICIPANTS, "nba", "basketball") == 100.0

    def test_no_follows(self) -> None:
        assert calculate_follow_relevance([], PARTICIPANTS, "nba", "basketball") == 0.0

    def test_monotonic_in_strength(self) -> None:
        values = [
            calculate_follow_relevance([follow("nba", type="league", strength=s)], PARTICIPANTS, "nba", "basketball")
            for s in range(1, 6)
        ]
        assert values == sorted(values)

    def test_has_direct_follow(self) -> None:
        assert has_direct_follow([follow("TOR")], PARTICIPANTS, "nba")
        assert has_direct_follow([follow("nba", type="competition")], PARTICIPANTS, "nba")
        assert not has_direct_follow([follow("LAL")], PARTICIPANTS, "nba")

    def test_followed_names_strongest_first(self) -> None:
        follows = [
            follow("TOR", strength=2, name="Toronto"),
            follow("BOS", strength=5, name="Boston"),
            follow("LAL", strength=5, name="Los Angeles"),
        ]
        assert followed_names(follows, PARTICIPANTS) == ["Boston", "Toronto"]


class TestComprehension:
    def test_known_sport(self) -> None:
        familiarity = [SportFamiliarity(sport="tennis", comprehension_level="informed")]
        assert get_sport_comprehension(familiarity, "tennis") is ComprehensionLevel.INFORMED

    def test_unknown_sport_defaults_to_novice(self) -> None:
        assert get_sport_comprehension([], "curling") is ComprehensionLevel.NOVICE


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


class TestApplyUpdate:
    def test_emotional_preferences_are_merged(self) -> None:
        prefs = UserPreferences(user_id="u1")
        updated = apply_preferences_update(
            prefs, UserPreferencesInput(emotional_preferences={"upsets": 5}), now=TS
        )
        assert updated.emotional_preferences.upsets == 5
        assert updated.emotional_preferences.drama == 3
        assert updated.last_updated == TS

    def test_input_is_not_mutated(self) -> None:
        prefs = UserPreferences(user_id="u1")
        apply_preferences_update(prefs, UserPreferencesInput(emotional_preferences={"drama": 0}))
        assert prefs.emotional_preferences.drama == 3

    def test_follows_replace_and_are_stamped(self) -> None:
        prefs = UserPreferences(user_id="u1", follows=[follow("LAL")])
        updated = apply_preferences_update(
            prefs, UserPreferencesInput(follows=[follow("BOS")]), now=TS
        )
        assert [f.id for f in updated.follows] == ["BOS"]
        assert updated.follows[0].followed_since == TS

    def test_existing_follow_stamp_kept(self) -> None:
        earlier = datetime(2020, 1, 1, tzinfo=timezone.utc)
        bos = UserFollow(id="BOS", type="team", name="Boston", sport="basketball",
                         followed_since=earlier)
        updated = apply_preferences_update(
            UserPreferences(user_id="u1"), UserPreferencesInput(follows=[bos]), now=TS
        )
        assert updated.follows[0].followed_since == earlier

    def test_viewing_context_merged_onto_default(self) -> None:
        updated = apply_preferences_update(
            UserPreferences(user_id="u1"),
            UserPreferencesInput(viewing_context={"current_mood": ViewingMood.INTENSE}),
        )
        assert updated.viewing_context.current_mood is ViewingMood.INTENSE
        assert updated.viewing_context.spoiler_tolerance is SpoilerTolerance.NONE

    def test_viewing_context_merged_onto_stored(self) -> None:
        prefs = UserPreferences(
            user_id="u1", viewing_context=ViewingContext(spoiler_tolerance="full")
        )
        updated = apply_preferences_update(
            prefs, UserPreferencesInput(viewing_context={"available_time": 90})
        )
        assert updated.viewing_context.spoiler_tolerance is SpoilerTolerance.FULL
        assert updated.viewing_context.available_time == 90

    def test_unknown_preference_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            apply_preferences_update(
                UserPreferences(user_id="u1"),
                UserPreferencesInput(emotional_preferences={"chaos": 5}),
            )

    def test_out_of_range_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            apply_preferences_update(
                UserPreferences(user_id="u1"),
                UserPreferencesInput(emotional_preferences={"drama": 9}),
            )

    def test_unknown_context_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            apply_preferences_update(
                UserPreferences(user_id="u1"),
                UserPreferencesInput(viewing_context={"volume": 11}),
            )

    def test_empty_update_keeps_everything(self) -> None:
        prefs = UserPreferences(user_id="u1", follows=[follow("BOS")])
        updated = apply_preferences_update(prefs, UserPreferencesInput(), now=TS)
        assert updated.follows == prefs.follows
        assert updated.emotional_preferences == prefs.emotional_preferences

