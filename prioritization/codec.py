"""Wire codec: camelCase JSON-style dicts to and from the domain dataclasses.

The gRPC layer carries ``google.protobuf.Struct`` payloads, which reach us as
plain dicts whose numbers are all floats.  Decoders restore whole numbers,
reject unknown keys and let the model constructors validate ranges and
enumerations.  Encoders drop ``None`` values.
"""

from __future__ import annotations

import re
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from prioritization.errors import ValidationError
from prioritization.models import (
    AggregatedTags,
    CuratorVerificationInput,
    EmotionalAnalysisInput,
    EmotionalPreferences,
    EventRecord,
    PriorityFilters,
    PriorityListSummary,
    PrioritizedEventList,
    SportFamiliarity,
    StakesFactors,
    SuspenseFactors,
    TranscendenceFactors,
    UnderdogFactors,
    UserFollow,
    UserPreferences,
    UserPreferencesInput,
    UserTagInput,
    ViewingContext,
    VolatilityFactors,
)

T = TypeVar("T")

# Fields that must reach the models as ints even though Struct sends floats.
_INT_FIELDS = frozenset(
    {
        "lead_changes",
        "momentum_swings",
        "critical_moments",
        "intensity_peaks",
        "follow_strength",
        "nail_biters",
        "dominance",
        "upsets",
        "historic_moments",
        "skill_display",
        "intensity",
        "drama",
    }
)

_DATETIME_FIELDS = frozenset({"followed_since", "last_updated"})

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _coerce_int(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _parse_datetime(value: Any, path: str) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(path, f"must be an ISO-8601 string, got {value!r}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(path, f"invalid timestamp {value!r}") from None


def _object(data: Any, path: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(path, f"must be an object, got {type(data).__name__}")
    return data


def require(data: dict[str, Any], key: str, path: str = "") -> Any:
    """Return ``data[key]``, raising :class:`ValidationError` when absent."""
    value = data.get(key)
    if value is None:
        raise ValidationError(f"{path}.{key}" if path else key, "is required")
    return value


def decode_flat(cls: type[T], data: Any, path: str) -> T:
    """Build a dataclass of scalar and list fields from a camelCase dict.

    Explicit nulls are treated as absent so the dataclass defaults apply;
    a null for a field without a default is reported as missing.

    Raises:
        ValidationError: On unknown keys, missing required fields or any
            value the dataclass rejects.
    """
    data = _object(data, path)
    known = {f.name for f in fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        name = to_snake(key)
        if name not in known:
            raise ValidationError(f"{path}.{key}", "unknown field")
        if value is None:
            continue
        if name in _INT_FIELDS:
            value = _coerce_int(value)
        elif name in _DATETIME_FIELDS:
            value = _parse_datetime(value, f"{path}.{key}")
        kwargs[name] = value
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise ValidationError(path, str(exc)) from None


def decode_analysis_input(data: Any, path: str = "analysisInput") -> EmotionalAnalysisInput:
    data = _object(data, path)
    sections = {
        "suspense": SuspenseFactors,
        "stakes": StakesFactors,
        "volatility": VolatilityFactors,
        "underdog": UnderdogFactors,
        "transcendence": TranscendenceFactors,
    }
    unknown = set(data) - set(sections)
    if unknown:
        raise ValidationError(path, f"unknown sections {sorted(unknown)}")
    return EmotionalAnalysisInput(
        **{
            name: decode_flat(cls, data.get(name) or {}, f"{path}.{name}")
            for name, cls in sections.items()
        }
    )


def decode_event(data: Any, path: str = "event") -> EventRecord:
    data = dict(_object(data, path))
    analysis = decode_analysis_input(data.pop("analysisInput", None) or {}, f"{path}.analysisInput")
    event = decode_flat(EventRecord, data, path)
    event.analysis_input = analysis
    return event


def decode_viewing_context(data: Any, path: str = "context") -> ViewingContext:
    return decode_flat(ViewingContext, data, path)


def decode_preferences(data: Any, path: str = "preferences") -> UserPreferences:
    data = dict(_object(data, path))
    follows = [
        decode_flat(UserFollow, f, f"{path}.follows[{i}]")
        for i, f in enumerate(data.pop("follows", None) or [])
    ]
    familiarity = [
        decode_flat(SportFamiliarity, f, f"{path}.sportFamiliarity[{i}]")
        for i, f in enumerate(data.pop("sportFamiliarity", None) or [])
    ]
    emotional = decode_flat(
        EmotionalPreferences,
        data.pop("emotionalPreferences", None) or {},
        f"{path}.emotionalPreferences",
    )
    context_data = data.pop("viewingContext", None)
    context = decode_viewing_context(context_data, f"{path}.viewingContext") if context_data else None
    preferences = decode_flat(UserPreferences, data, path)
    preferences.follows = follows
    preferences.sport_familiarity = familiarity
    preferences.emotional_preferences = emotional
    preferences.viewing_context = context
    return preferences


def decode_preferences_update(data: Any, path: str = "update") -> UserPreferencesInput:
    data = _object(data, path)
    unknown = set(data) - {"follows", "sportFamiliarity", "emotionalPreferences", "viewingContext"}
    if unknown:
        raise ValidationError(path, f"unknown fields {sorted(unknown)}")
    follows = data.get("follows")
    familiarity = data.get("sportFamiliarity")
    emotional = data.get("emotionalPreferences")
    context = data.get("viewingContext")
    return UserPreferencesInput(
        follows=None
        if follows is None
        else [decode_flat(UserFollow, f, f"{path}.follows[{i}]") for i, f in enumerate(follows)],
        sport_familiarity=None
        if familiarity is None
        else [
            decode_flat(SportFamiliarity, f, f"{path}.sportFamiliarity[{i}]")
            for i, f in enumerate(familiarity)
        ],
        emotional_preferences=None
        if emotional is None
        else {to_snake(k): _coerce_int(v) for k, v in _object(emotional, path).items()},
        viewing_context=None
        if context is None
        else {to_snake(k): v for k, v in _object(context, path).items()},
    )


def decode_filters(data: Any, path: str = "filters") -> PriorityFilters:
    return decode_flat(PriorityFilters, data, path)


def decode_user_tag(data: Any, path: str = "request") -> UserTagInput:
    return decode_flat(UserTagInput, data, path)


def decode_curator_verification(data: Any, path: str = "request") -> CuratorVerificationInput:
    return decode_flat(CuratorVerificationInput, data, path)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode(value: Any) -> Any:
    """Convert a model (or nested structure of models) to wire-ready data."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, PriorityListSummary):
        return encode_summary(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {
            to_camel(f.name): encode(getattr(value, f.name))
            for f in fields(value)
            if getattr(value, f.name) is not None
        }
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else str(k)): encode(v)
            for k, v in value.items()
            if v is not None
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode(v) for v in value]
    if isinstance(value, float):
        return float(value)
    return value


def encode_summary(summary: PriorityListSummary) -> dict[str, Any]:
    return {
        "totalEvents": summary.total_events,
        "tierCounts": encode(summary.tier_counts),
        "topReasonTypes": [
            {"type": t.value, "count": n} for t, n in summary.top_reason_types
        ],
        "topTags": [{"tag": tag, "count": n} for tag, n in summary.top_tags],
        "topEmotionalFactors": [
            {"dimension": d.value, "score": score} for d, score in summary.top_emotional_factors
        ],
        "sportBreakdown": [
            {"sport": sport, "count": n, "averageScore": avg}
            for sport, n, avg in summary.sport_breakdown
        ],
        "degradedCount": summary.degraded_count,
        "excludedWatched": summary.excluded_watched,
    }


def encode_tags(tags: AggregatedTags) -> dict[str, Any]:
    return encode(tags)


def encode_list(result: PrioritizedEventList) -> dict[str, Any]:
    """Encode a ranked list, adding the per-tier grouping as event IDs."""
    encoded = encode(result)
    encoded["tiers"] = {
        tier.value: [p.event_id for p in priorities] for tier, priorities in result.tiers.items()
    }
    return encoded
