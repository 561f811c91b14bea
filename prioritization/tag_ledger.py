"""Tag ledger: thread-safe record of raw tag submissions per event."""

from __future__ import annotations

import logging
import threading
from collections import Counter, OrderedDict
from dataclasses import dataclass, field

from prioritization.models import (
    AggregatedTags,
    CuratorVerificationInput,
    EventTag,
    TagCategory,
    UserTagInput,
)
from prioritization.tags import TagAggregator, infer_category, normalize_tag

logger = logging.getLogger(__name__)


@dataclass
class _EventTagInputs:
    algorithmic: list[EventTag] = field(default_factory=list)
    # (user_id, tag name, category) -> submission; one vote per user per tag
    user: dict[tuple[str, str, TagCategory], UserTagInput] = field(default_factory=dict)
    curator: list[CuratorVerificationInput] = field(default_factory=list)


class TagLedger:
    """Thread-safe in-memory store of every tag input known for each event.

    The ledger holds inputs only.  Aggregated tags are never stored; every
    read folds the current inputs through the
    :class:`~prioritization.tags.TagAggregator`, so results are always
    consistent with what has been submitted.

    At most *max_events* events are kept.  Once full, recording inputs for a
    new event evicts the event written least recently, together with its
    user votes and curator verdicts.

    Args:
        aggregator: The aggregator used to fold inputs.
        max_events: Capacity of the ledger.

    Raises:
        ValueError: If *max_events* is not positive.
    """

    def __init__(self, aggregator: TagAggregator, max_events: int = 10000) -> None:
        if max_events < 1:
            raise ValueError(f"max_events must be positive, got {max_events}")
        self._aggregator = aggregator
        self._max_events = max_events
        self._lock = threading.RLock()
        self._events: OrderedDict[str, _EventTagInputs] = OrderedDict()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def set_algorithmic_tags(self, event_id: str, tags: list[EventTag]) -> None:
        """Replace the algorithmic tags for *event_id* (re-analysis overwrites)."""
        with self._lock:
            self._get_or_create(event_id).algorithmic = list(tags)
        logger.debug("Stored %d algorithmic tags for %s.", len(tags), event_id)

    def record_user_tag(self, submission: UserTagInput) -> AggregatedTags:
        """Record a community tag and return the event's updated tags.

        A user re-submitting the same tag replaces their earlier vote.

        Raises:
            ValidationError: If the tag is empty after normalisation.
        """
        name = normalize_tag(submission.tag)
        key = (submission.user_id, name, submission.category or infer_category(name))
        with self._lock:
            self._get_or_create(submission.event_id).user[key] = submission
        logger.info(
            "User %s tagged %s as %r.", submission.user_id, submission.event_id, name
        )
        return self.aggregate(submission.event_id)

    def record_curator_verification(
        self, verification: CuratorVerificationInput
    ) -> AggregatedTags:
        """Record a curator verdict and return the event's updated tags.

        Raises:
            ValidationError: If the tag is empty after normalisation.
        """
        name = normalize_tag(verification.tag)
        with self._lock:
            self._get_or_create(verification.event_id).curator.append(verification)
        logger.info(
            "Curator %s %s %r on %s.",
            verification.curator_id,
            "approved" if verification.verified else "rejected",
            name,
            verification.event_id,
        )
        return self.aggregate(verification.event_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def aggregate(self, event_id: str) -> AggregatedTags:
        """Fold every known input for *event_id*.  Unknown events give no tags."""
        with self._lock:
            inputs = self._events.get(event_id)
            if inputs is None:
                return AggregatedTags(event_id=event_id)
            algorithmic = list(inputs.algorithmic)
            user = list(inputs.user.values())
            curator = list(inputs.curator)
        return self._aggregator.aggregate(algorithmic, user, curator, event_id=event_id)

    def event_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._events)

    def popular_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        """Return the most-submitted tag names across all events.

        Counts are the summed submission counts of each aggregated tag, so a
        tag rejected outright by curators on an event does not count there.

        Args:
            limit: Maximum number of entries.

        Returns:
            ``(name, count)`` pairs, highest count first, then by name.
        """
        counts: Counter[str] = Counter()
        for event_id in self.event_ids():
            for tag in self.aggregate(event_id).tags:
                counts[tag.name] += tag.count
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]

    def find_events_by_tag(self, tag: str) -> list[str]:
        """Return IDs of events whose aggregated tags include *tag*."""
        name = normalize_tag(tag)
        return [
            event_id
            for event_id in self.event_ids()
            if name in self.aggregate(event_id).names()
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_or_create(self, event_id: str) -> _EventTagInputs:
        with self._lock:
            if event_id in self._events:
                self._events.move_to_end(event_id)
                return self._events[event_id]
            while len(self._events) >= self._max_events:
                evicted, _ = self._events.popitem(last=False)
                logger.info("Tag ledger full; evicted %s.", evicted)
            inputs = self._events[event_id] = _EventTagInputs()
            return inputs
