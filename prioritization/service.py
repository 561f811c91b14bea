"""gRPC servicer: the entry point for all inbound calls from the GraphQL layer."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import grpc
from google.protobuf import json_format
from google.protobuf.struct_pb2 import Struct

from prioritization import codec
from prioritization.engine import PrioritizationEngine
from prioritization.errors import ValidationError

logger = logging.getLogger(__name__)

SERVICE_NAME = "otw.prioritization.PrioritizationService"

METHOD_NAMES: tuple[str, ...] = (
    "AnalyzeEvent",
    "GetEventTags",
    "SubmitUserTag",
    "VerifyCuratorTag",
    "GetEventPriority",
    "GetPrioritizedEvents",
    "UpdateUserPreferences",
    "GetPopularTags",
    "FindEventsByTag",
)

_SLOW_CALL_WARN_THRESHOLD_MS = 250


class PrioritizationServicer:
    """Implements ``PrioritizationService`` over ``google.protobuf.Struct``.

    Every method takes and returns a ``Struct`` whose keys are camelCase.
    Register it with :func:`build_generic_handler`.

    Error mapping:

    ======================  ====================
    Exception               Status
    ======================  ====================
    ``ValueError``          ``INVALID_ARGUMENT``
    anything else           ``INTERNAL`` (logged)
    ======================  ====================

    :class:`~prioritization.errors.ValidationError` subclasses ``ValueError``
    so malformed requests are always reported back with their field name.

    Args:
        engine: The :class:`~prioritization.engine.PrioritizationEngine`.
        popular_tags_limit: Default size of ``GetPopularTags`` responses.
    """

    def __init__(self, engine: PrioritizationEngine, popular_tags_limit: int = 10) -> None:
        self._engine = engine
        self._popular_tags_limit = popular_tags_limit

    # ------------------------------------------------------------------
    # Analysis and tags
    # ------------------------------------------------------------------

    def AnalyzeEvent(self, request: Struct, context: Any) -> Struct:
        """``{event}`` -> ``{analysis, tags}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            event = codec.decode_event(codec.require(data, "event"))
            analysis = self._engine.analyze_event(event)
            return {
                "analysis": codec.encode(analysis),
                "tags": codec.encode_tags(self._engine.get_event_tags(event.event_id)),
            }

        return self._call("AnalyzeEvent", request, context, handle)

    def GetEventTags(self, request: Struct, context: Any) -> Struct:
        """``{eventId}`` -> ``{tags}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            event_id = codec.require(data, "eventId")
            return {"tags": codec.encode_tags(self._engine.get_event_tags(event_id))}

        return self._call("GetEventTags", request, context, handle)

    def SubmitUserTag(self, request: Struct, context: Any) -> Struct:
        """``{eventId, userId, tag, category?}`` -> ``{tags}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            submission = codec.decode_user_tag(data)
            return {"tags": codec.encode_tags(self._engine.submit_user_tag(submission))}

        return self._call("SubmitUserTag", request, context, handle)

    def VerifyCuratorTag(self, request: Struct, context: Any) -> Struct:
        """``{eventId, curatorId, tag, verified, category?}`` -> ``{tags}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            verification = codec.decode_curator_verification(data)
            return {"tags": codec.encode_tags(self._engine.verify_curator_tag(verification))}

        return self._call("VerifyCuratorTag", request, context, handle)

    def GetPopularTags(self, request: Struct, context: Any) -> Struct:
        """``{limit?}`` -> ``{tags: [{tag, count}]}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            limit = data.get("limit", self._popular_tags_limit)
            if isinstance(limit, bool) or not isinstance(limit, (int, float)) or limit < 1:
                raise ValidationError("limit", f"must be a positive number, got {limit!r}")
            popular = self._engine.popular_tags(int(limit))
            return {"tags": [{"tag": name, "count": count} for name, count in popular]}

        return self._call("GetPopularTags", request, context, handle)

    def FindEventsByTag(self, request: Struct, context: Any) -> Struct:
        """``{tag}`` -> ``{eventIds}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            tag = codec.require(data, "tag")
            if not isinstance(tag, str):
                raise ValidationError("tag", f"must be a string, got {tag!r}")
            return {"eventIds": self._engine.find_events_by_tag(tag)}

        return self._call("FindEventsByTag", request, context, handle)

    # ------------------------------------------------------------------
    # Priorities and preferences
    # ------------------------------------------------------------------

    def GetEventPriority(self, request: Struct, context: Any) -> Struct:
        """``{event, preferences, context?}`` -> ``{priority}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            event = codec.decode_event(codec.require(data, "event"))
            preferences = codec.decode_preferences(codec.require(data, "preferences"))
            viewing = _optional(data, "context", codec.decode_viewing_context)
            priority = self._engine.get_event_priority(event, preferences, viewing)
            return {"priority": codec.encode(priority)}

        return self._call("GetEventPriority", request, context, handle)

    def GetPrioritizedEvents(self, request: Struct, context: Any) -> Struct:
        """``{events, preferences, filters?, context?}`` -> ``{list}``."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            raw_events = data.get("events") or []
            if not isinstance(raw_events, list):
                raise ValidationError("events", "must be a list")
            events = [codec.decode_event(e, f"events[{i}]") for i, e in enumerate(raw_events)]
            preferences = codec.decode_preferences(codec.require(data, "preferences"))
            filters = _optional(data, "filters", codec.decode_filters)
            viewing = _optional(data, "context", codec.decode_viewing_context)
            result = self._engine.get_prioritized_events(events, preferences, filters, viewing)
            return {"list": codec.encode_list(result)}

        return self._call("GetPrioritizedEvents", request, context, handle)

    def UpdateUserPreferences(self, request: Struct, context: Any) -> Struct:
        """``{preferences, update}`` -> ``{preferences}``.  Nothing is stored."""

        def handle(data: dict[str, Any]) -> dict[str, Any]:
            preferences = codec.decode_preferences(codec.require(data, "preferences"))
            update = codec.decode_preferences_update(codec.require(data, "update"))
            updated = self._engine.update_user_preferences(preferences, update)
            return {"preferences": codec.encode(updated)}

        return self._call("UpdateUserPreferences", request, context, handle)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _call(
        method: str,
        request: Struct,
        context: Any,
        handle: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> Struct:
        """Decode, run *handle*, encode, and map failures onto status codes."""
        start_ms = time.monotonic() * 1000
        try:
            payload = handle(json_format.MessageToDict(request))
            return json_format.ParseDict(payload, Struct())
        except ValueError as exc:
            context.set_code(grpc.StatusCode.INVALID_ARGUMENT)
            context.set_details(str(exc))
            return Struct()
        except Exception:
            logger.exception("Unexpected error handling %s", method)
            context.set_code(grpc.StatusCode.INTERNAL)
            context.set_details(f"Internal error handling {method}.")
            return Struct()
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > _SLOW_CALL_WARN_THRESHOLD_MS:
                logger.warning("%s took %.1fms", method, elapsed_ms)
            else:
                logger.debug("%s took %.1fms", method, elapsed_ms)


def _optional(data: dict[str, Any], key: str, decode: Callable[[Any, str], Any]) -> Any:
    value = data.get(key)
    return None if value is None else decode(value, key)


def build_generic_handler(servicer: PrioritizationServicer) -> grpc.GenericRpcHandler:
    """Expose every servicer method as a unary ``Struct`` -> ``Struct`` RPC."""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=Struct.FromString,
            response_serializer=Struct.SerializeToString,
        )
        for name in METHOD_NAMES
    }
    return grpc.method_handlers_generic_handler(SERVICE_NAME, handlers)
