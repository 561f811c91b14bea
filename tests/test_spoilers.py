"""Tests for spoiler classification and gating."""

from __future__ import annotations

import pytest

from prioritization.models import EventTag, SpoilerLevel, SpoilerTolerance, TagCategory, TagSource
from prioritization.spoilers import (
    allowed_level,
    classify_tag,
    classify_text,
    contains_spoiler,
    gate_tags,
    highest_level,
    is_allowed,
)
from tests.conftest import make_profile


def tag(name: str, category: TagCategory = TagCategory.EMOTIONAL) -> EventTag:
    return EventTag(name=name, category=category, source=TagSource.ALGORITHMIC)


class TestClassifyText:
    @pytest.mark.parametrize(
        "text",
        [
            "Boston won in overtime",
            "Final score 102-99",
            "Huge upset in the first round",
            "A late comeback",
            "It finished 2:1",
        ],
    )
    def test_outcome_text_is_full(self, text) -> None:
        assert classify_text(text) is SpoilerLevel.FULL

    @pytest.mark.parametrize(
        "text",
        [
            "Potential instant classic",
            "An absolute nail biter",
            "Edge-of-your-seat finish",
            "Matches your taste for tight contests",
            "A commanding performance",
            "Close all the way",
        ],
    )
    def test_qualitative_text_is_mild(self, text) -> None:
        assert classify_text(text) is SpoilerLevel.MILD

    @pytest.mark.parametrize(
        "text", ["Your team: Boston", "Rivalry game", "Fits in your available time", ""]
    )
    def test_neutral_text_is_safe(self, text) -> None:
        assert classify_text(text) is SpoilerLevel.SAFE

    def test_terms_match_whole_words_only(self) -> None:
        assert classify_text("A winding road") is SpoilerLevel.SAFE
        assert classify_text("Scoreboard watching") is SpoilerLevel.SAFE


class TestClassifyTag:
    def test_outcome_category_always_full(self) -> None:
        assert classify_tag(tag("cinderella-story", TagCategory.OUTCOME)) is SpoilerLevel.FULL

    def test_hyphenated_name_matches_spaced_term(self) -> None:
        assert classify_tag(tag("close-finish")) is SpoilerLevel.MILD

    def test_neutral_tag(self) -> None:
        assert classify_tag(tag("playoff-atmosphere", TagCategory.CONTEXT)) is SpoilerLevel.SAFE

    def test_performance_tags_are_mild(self) -> None:
        assert classify_tag(tag("dominant-performance", TagCategory.QUALITY)) is SpoilerLevel.MILD
        assert classify_tag(tag("masterclass", TagCategory.QUALITY)) is SpoilerLevel.MILD


class TestGating:
    def test_allowed_levels(self) -> None:
        assert allowed_level(SpoilerTolerance.NONE) is SpoilerLevel.SAFE
        assert allowed_level(SpoilerTolerance.MILD) is SpoilerLevel.MILD
        assert allowed_level(SpoilerTolerance.MODERATE) is SpoilerLevel.FULL
        assert allowed_level(SpoilerTolerance.FULL) is SpoilerLevel.FULL

    def test_is_allowed(self) -> None:
        assert is_allowed(SpoilerLevel.SAFE, SpoilerTolerance.NONE)
        assert not is_allowed(SpoilerLevel.MILD, SpoilerTolerance.NONE)
        assert is_allowed(SpoilerLevel.MILD, SpoilerTolerance.MILD)
        assert not is_allowed(SpoilerLevel.FULL, SpoilerTolerance.MILD)

    def test_contains_spoiler(self) -> None:
        assert contains_spoiler("They won", SpoilerTolerance.MILD)
        assert not contains_spoiler("They won", SpoilerTolerance.FULL)

    def test_gate_tags_preserves_order(self) -> None:
        tags = [
            tag("thriller"),
            tag("rivalry", TagCategory.CONTEXT),
            tag("upset", TagCategory.OUTCOME),
            tag("high-stakes", TagCategory.CONTEXT),
        ]
        assert [t.name for t in gate_tags(tags, SpoilerTolerance.NONE)] == ["rivalry", "high-stakes"]
        assert [t.name for t in gate_tags(tags, SpoilerTolerance.MILD)] == [
            "thriller",
            "rivalry",
            "high-stakes",
        ]
        assert len(gate_tags(tags, SpoilerTolerance.FULL)) == 4

    def test_only_neutral_generated_tags_survive_no_tolerance(self, aggregator) -> None:
        generated = aggregator.generate_algorithmic_tags(make_profile(100, 100, 100, 100, 100))
        generated += aggregator.generate_algorithmic_tags(make_profile(100, 100, 0, 100, 100))
        assert len({t.name for t in generated}) == 21
        visible = gate_tags(generated, SpoilerTolerance.NONE)
        assert {t.name for t in visible} == {
            "david-vs-goliath",
            "high-stakes",
            "playoff-atmosphere",
        }
        assert all(classify_tag(t) is SpoilerLevel.SAFE for t in visible)

    def test_highest_level(self) -> None:
        assert highest_level([]) is SpoilerLevel.SAFE
        assert highest_level([SpoilerLevel.MILD, SpoilerLevel.SAFE]) is SpoilerLevel.MILD
        assert highest_level([SpoilerLevel.FULL, SpoilerLevel.MILD]) is SpoilerLevel.FULL
