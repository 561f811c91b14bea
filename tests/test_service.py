"""Tests for PrioritizationServicer (gRPC service layer)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import grpc
import pytest
from google.protobuf import json_format
from google.protobuf.struct_pb2 import Struct

from prioritization.service import (
    METHOD_NAMES,
    SERVICE_NAME,
    PrioritizationServicer,
    build_generic_handler,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request(payload: dict) -> Struct:
    return json_format.ParseDict(payload, Struct())


def _make_context() -> MagicMock:
    """Return a mock gRPC context."""
    ctx = MagicMock()
    ctx.set_code = MagicMock()
    ctx.set_details = MagicMock()
    return ctx


def _call(servicer: PrioritizationServicer, method: str, payload: dict, ctx=None) -> dict:
    response = getattr(servicer, method)(_make_request(payload), ctx or _make_context())
    return json_format.MessageToDict(response)


THRILLER = {
    "eventId": "g_bos_tor",
    "sport": "basketball",
    "league": "nba",
    "participants": ["BOS", "TOR"],
    "communityEngagement": 80,
    "duration": 150,
    "analysisInput": {
        "suspense": {
            "scoreMargin": 1,
            "leadChanges": 5,
            "lateDrama": True,
            "wentToOvertime": True,
            "uncertaintyDuration": 90,
        },
        "stakes": {
            "playoffImplications": "elimination",
            "rivalryLevel": "historic",
            "recordsAtStake": [],
            "seasonContext": "postseason",
        },
        "volatility": {
            "momentumSwings": 4,
            "criticalMoments": 3,
            "eventFrequency": 1.5,
            "intensityPeaks": 2,
        },
    },
}

QUIET = {
    "eventId": "g_den_uta",
    "sport": "basketball",
    "league": "nba",
    "participants": ["DEN", "UTA"],
    "analysisInput": {
        "suspense": {"scoreMargin": 30, "leadChanges": 0, "lateDrama": False},
    },
}

BOS_FAN = {
    "userId": "u_bos",
    "follows": [
        {"id": "BOS", "type": "team", "name": "Boston", "sport": "basketball",
         "followStrength": 5},
    ],
    "sportFamiliarity": [{"sport": "basketball", "comprehensionLevel": "expert"}],
}


@pytest.fixture
def servicer(engine) -> PrioritizationServicer:
    return PrioritizationServicer(engine)


# ---------------------------------------------------------------------------
# Analysis and tags
# ---------------------------------------------------------------------------


class TestAnalyzeEvent:
    def test_returns_analysis_and_tags(self, servicer) -> None:
        response = _call(servicer, "AnalyzeEvent", {"event": THRILLER})
        assert response["analysis"]["profile"]["suspense"] == pytest.approx(89.8)
        assert "nail-biter" in [t["name"] for t in response["tags"]["tags"]]

    def test_missing_event_sets_invalid_argument(self, servicer) -> None:
        ctx = _make_context()
        response = _call(servicer, "AnalyzeEvent", {}, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)
        assert response == {}

    def test_invalid_value_reports_field(self, servicer) -> None:
        bad = {**THRILLER, "analysisInput": {"suspense": {"scoreMargin": -3}}}
        ctx = _make_context()
        _call(servicer, "AnalyzeEvent", {"event": bad}, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)
        assert "score_margin" in ctx.set_details.call_args[0][0]

    def test_engine_error_sets_internal(self, servicer) -> None:
        servicer._engine = MagicMock()
        servicer._engine.analyze_event.side_effect = RuntimeError("crash")
        ctx = _make_context()
        _call(servicer, "AnalyzeEvent", {"event": THRILLER}, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INTERNAL)


class TestTags:
    def test_unknown_event_has_no_tags(self, servicer) -> None:
        response = _call(servicer, "GetEventTags", {"eventId": "nope"})
        assert response["tags"]["eventId"] == "nope"
        assert response["tags"].get("tags", []) == []

    def test_submit_user_tag(self, servicer) -> None:
        payload = {"eventId": "g1", "userId": "u1", "tag": "Buzzer Beater"}
        response = _call(servicer, "SubmitUserTag", payload)
        (tag,) = response["tags"]["tags"]
        assert tag["name"] == "buzzer-beater"
        assert tag["category"] == "moment"
        assert tag["count"] == 1

    def test_submit_user_tag_unknown_category(self, servicer) -> None:
        ctx = _make_context()
        payload = {"eventId": "g1", "userId": "u1", "tag": "x", "category": "vibes"}
        _call(servicer, "SubmitUserTag", payload, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)

    def test_verify_curator_tag(self, servicer) -> None:
        _call(servicer, "AnalyzeEvent", {"event": THRILLER})
        payload = {"eventId": "g_bos_tor", "curatorId": "c1", "tag": "nail-biter", "verified": True}
        response = _call(servicer, "VerifyCuratorTag", payload)
        assert response["tags"]["curatorVerifiedCount"] == 1

    def test_popular_tags(self, servicer) -> None:
        for user in ("u1", "u2"):
            _call(servicer, "SubmitUserTag", {"eventId": "g1", "userId": user, "tag": "thriller"})
        _call(servicer, "SubmitUserTag", {"eventId": "g2", "userId": "u1", "tag": "upset"})
        response = _call(servicer, "GetPopularTags", {"limit": 1})
        assert response["tags"] == [{"tag": "thriller", "count": 2}]

    def test_find_events_by_tag(self, servicer) -> None:
        _call(servicer, "AnalyzeEvent", {"event": THRILLER})
        _call(servicer, "SubmitUserTag", {"eventId": "g9", "userId": "u1", "tag": "nail-biter"})
        response = _call(servicer, "FindEventsByTag", {"tag": "Nail Biter"})
        assert response["eventIds"] == ["g9", "g_bos_tor"]

    @pytest.mark.parametrize("payload", [{}, {"tag": 3}, {"tag": "!!"}])
    def test_find_events_by_tag_bad_tag(self, servicer, payload) -> None:
        ctx = _make_context()
        _call(servicer, "FindEventsByTag", payload, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)

    @pytest.mark.parametrize("limit", [0, -1, "ten"])
    def test_popular_tags_bad_limit(self, servicer, limit) -> None:
        ctx = _make_context()
        _call(servicer, "GetPopularTags", {"limit": limit}, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)


# ---------------------------------------------------------------------------
# Priorities and preferences
# ---------------------------------------------------------------------------


class TestGetEventPriority:
    def test_returns_priority(self, servicer) -> None:
        response = _call(servicer, "GetEventPriority", {"event": THRILLER, "preferences": BOS_FAN})
        priority = response["priority"]
        assert priority["eventId"] == "g_bos_tor"
        assert priority["scoreBreakdown"]["relevance"] == 100.0
        assert priority["spoilerLevel"] == "safe"
        assert "reasons" in priority

    def test_request_context_overrides_stored(self, servicer) -> None:
        payload = {
            "event": THRILLER,
            "preferences": BOS_FAN,
            "context": {"spoilerTolerance": "full"},
        }
        priority = _call(servicer, "GetEventPriority", payload)["priority"]
        assert "comeback" in [t["name"] for t in priority["tags"]]

    def test_null_spoiler_tolerance_uses_default(self, servicer) -> None:
        ctx = _make_context()
        payload = {
            "event": THRILLER,
            "preferences": BOS_FAN,
            "context": {"spoilerTolerance": None},
        }
        priority = _call(servicer, "GetEventPriority", payload, ctx)["priority"]
        ctx.set_code.assert_not_called()
        assert priority["spoilerLevel"] == "safe"
        assert "comeback" not in [t["name"] for t in priority["tags"]]

    def test_null_follow_strength_uses_default(self, servicer) -> None:
        ctx = _make_context()
        follow = {**BOS_FAN["follows"][0], "followStrength": None}
        payload = {"event": THRILLER, "preferences": {**BOS_FAN, "follows": [follow]}}
        priority = _call(servicer, "GetEventPriority", payload, ctx)["priority"]
        ctx.set_code.assert_not_called()
        assert priority["scoreBreakdown"]["relevance"] == 60.0

    def test_null_in_preferences_update_rejected(self, servicer) -> None:
        ctx = _make_context()
        payload = {"preferences": BOS_FAN, "update": {"viewingContext": {"spoilerTolerance": None}}}
        _call(servicer, "UpdateUserPreferences", payload, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)

    def test_missing_preferences(self, servicer) -> None:
        ctx = _make_context()
        _call(servicer, "GetEventPriority", {"event": THRILLER}, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)


class TestGetPrioritizedEvents:
    def test_returns_ranked_list(self, servicer) -> None:
        payload = {"events": [QUIET, THRILLER], "preferences": BOS_FAN}
        ranked = _call(servicer, "GetPrioritizedEvents", payload)["list"]
        assert [e["eventId"] for e in ranked["events"]] == ["g_bos_tor", "g_den_uta"]
        assert ranked["summary"]["totalEvents"] == 2
        assert set(ranked["tiers"]) == {"must", "worth", "highlights", "skip"}

    def test_watched_excluded(self, servicer) -> None:
        payload = {
            "events": [QUIET, THRILLER],
            "preferences": BOS_FAN,
            "context": {"alreadyWatched": ["g_bos_tor"]},
        }
        ranked = _call(servicer, "GetPrioritizedEvents", payload)["list"]
        assert [e["eventId"] for e in ranked["events"]] == ["g_den_uta"]
        assert ranked["summary"]["excludedWatched"] == 1

    def test_filters(self, servicer) -> None:
        payload = {
            "events": [QUIET, THRILLER],
            "preferences": BOS_FAN,
            "filters": {"followedOnly": True},
        }
        ranked = _call(servicer, "GetPrioritizedEvents", payload)["list"]
        assert [e["eventId"] for e in ranked["events"]] == ["g_bos_tor"]

    def test_events_must_be_list(self, servicer) -> None:
        ctx = _make_context()
        _call(servicer, "GetPrioritizedEvents", {"events": "g1", "preferences": BOS_FAN}, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)

    def test_slow_response_logs_warning(self, servicer) -> None:
        with patch("prioritization.service._SLOW_CALL_WARN_THRESHOLD_MS", -1):
            with patch("prioritization.service.logger") as mock_logger:
                _call(servicer, "GetPrioritizedEvents", {"events": [], "preferences": BOS_FAN})
                mock_logger.warning.assert_called_once()


class TestUpdateUserPreferences:
    def test_merges_update(self, servicer) -> None:
        payload = {
            "preferences": BOS_FAN,
            "update": {"emotionalPreferences": {"upsets": 5}, "viewingContext": {"currentMood": "casual"}},
        }
        prefs = _call(servicer, "UpdateUserPreferences", payload)["preferences"]
        assert prefs["emotionalPreferences"]["upsets"] == 5
        assert prefs["emotionalPreferences"]["drama"] == 3
        assert prefs["viewingContext"]["currentMood"] == "casual"
        assert prefs["follows"][0]["id"] == "BOS"
        assert "lastUpdated" in prefs

    def test_out_of_range_rejected(self, servicer) -> None:
        ctx = _make_context()
        payload = {"preferences": BOS_FAN, "update": {"emotionalPreferences": {"upsets": 7}}}
        _call(servicer, "UpdateUserPreferences", payload, ctx)
        ctx.set_code.assert_called_once_with(grpc.StatusCode.INVALID_ARGUMENT)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestGenericHandler:
    @pytest.mark.parametrize("method", METHOD_NAMES)
    def test_every_method_is_routed(self, servicer, method) -> None:
        handler = build_generic_handler(servicer)
        call_details = MagicMock(method=f"/{SERVICE_NAME}/{method}")
        assert handler.service(call_details) is not None

    def test_unknown_method_is_not_routed(self, servicer) -> None:
        handler = build_generic_handler(servicer)
        call_details = MagicMock(method=f"/{SERVICE_NAME}/DropTables")
        assert handler.service(call_details) is None
