"""Prioritization engine: wires analyzer, tags and calculator into one flow."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from prioritization.analyzer import EmotionalProfileAnalyzer
from prioritization.calculator import PriorityCalculator
from prioritization.models import (
    AggregatedTags,
    CuratorVerificationInput,
    EmotionalAnalysisResult,
    EventPriority,
    EventRecord,
    PrioritizedEventList,
    PriorityCalculationInput,
    PriorityFilters,
    UserPreferences,
    UserPreferencesInput,
    UserTagInput,
    ViewingContext,
)
from prioritization.preferences import apply_preferences_update
from prioritization.tag_ledger import TagLedger
from prioritization.tags import TagAggregator

logger = logging.getLogger(__name__)


class PrioritizationEngine:
    """End-to-end prioritization for one viewer at a time.

    Data flow per event::

        EventRecord.analysis_input -> analyzer -> EmotionalAnalysisResult
        profile -> algorithmic tags -> ledger
        ledger (algorithmic + user + curator) -> AggregatedTags
        result + tags + preferences + context -> calculator -> EventPriority

    The engine itself holds no state; the only mutable collaborator is the
    :class:`~prioritization.tag_ledger.TagLedger`.

    Args:
        analyzer: Emotional profile analyzer.
        aggregator: Tag aggregator (also generates algorithmic tags).
        ledger: Store of tag submissions.
        calculator: Priority calculator.
        max_workers: Thread count for batch analysis.
    """

    def __init__(
        self,
        analyzer: EmotionalProfileAnalyzer,
        aggregator: TagAggregator,
        ledger: TagLedger,
        calculator: PriorityCalculator,
        max_workers: int | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._aggregator = aggregator
        self._ledger = ledger
        self._calculator = calculator
        self._max_workers = max_workers

    # ------------------------------------------------------------------
    # Analysis and tags
    # ------------------------------------------------------------------

    def analyze_event(self, event: EventRecord) -> EmotionalAnalysisResult:
        """Analyse *event* and refresh its algorithmic tags in the ledger."""
        result = self._analyzer.analyze(event.analysis_input)
        self._ledger.set_algorithmic_tags(
            event.event_id, self._aggregator.generate_algorithmic_tags(result.profile)
        )
        logger.debug(
            "Analysed %s: confidence=%.0f moments=%d",
            event.event_id,
            result.confidence,
            len(result.key_moments),
        )
        return result

    def get_event_tags(self, event_id: str) -> AggregatedTags:
        return self._ledger.aggregate(event_id)

    def submit_user_tag(self, submission: UserTagInput) -> AggregatedTags:
        return self._ledger.record_user_tag(submission)

    def verify_curator_tag(self, verification: CuratorVerificationInput) -> AggregatedTags:
        return self._ledger.record_curator_verification(verification)

    def popular_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        return self._ledger.popular_tags(limit)

    def find_events_by_tag(self, tag: str) -> list[str]:
        return self._ledger.find_events_by_tag(tag)

    # ------------------------------------------------------------------
    # Priorities
    # ------------------------------------------------------------------

    def get_event_priority(
        self,
        event: EventRecord,
        preferences: UserPreferences,
        context: ViewingContext | None = None,
    ) -> EventPriority:
        """Priority of one event for the viewer owning *preferences*."""
        return self._calculator.compute_priority(self._build_input(event, preferences, context))

    def get_prioritized_events(
        self,
        events: Sequence[EventRecord],
        preferences: UserPreferences,
        filters: PriorityFilters | None = None,
        context: ViewingContext | None = None,
    ) -> PrioritizedEventList:
        """Rank *events* for the viewer owning *preferences*.

        Events are analysed in parallel, scored in parallel and then joined
        into one filtered, ordered list.

        Args:
            events: Candidate events.
            preferences: The viewer's stored preferences.
            filters: Optional list filters.
            context: Session context; falls back to the stored one.

        Returns:
            The ranked list with its summary.
        """
        effective_context = context or preferences.viewing_context or ViewingContext()
        if events:
            with ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="analysis"
            ) as pool:
                inputs = list(
                    pool.map(
                        lambda e: self._build_input(e, preferences, effective_context), events
                    )
                )
        else:
            inputs = []
        priorities = self._calculator.compute_priorities(inputs)
        result = self._calculator.build_list(
            priorities,
            filters,
            context=effective_context,
            user_id=preferences.user_id,
        )
        logger.info(
            "Prioritised %d of %d events for %s (%d watched excluded).",
            result.summary.total_events,
            len(events),
            preferences.user_id,
            result.summary.excluded_watched,
        )
        return result

    def update_user_preferences(
        self, preferences: UserPreferences, update: UserPreferencesInput
    ) -> UserPreferences:
        """Apply *update* to *preferences*.  Storage is the caller's concern."""
        return apply_preferences_update(preferences, update)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_input(
        self,
        event: EventRecord,
        preferences: UserPreferences,
        context: ViewingContext | None,
    ) -> PriorityCalculationInput:
        analysis = self.analyze_event(event)
        return PriorityCalculationInput(
            event_id=event.event_id,
            sport=event.sport,
            league=event.league,
            participants=tuple(event.participants),
            analysis=analysis,
            tags=self._ledger.aggregate(event.event_id),
            preferences=preferences,
            context=context,
            community_engagement=event.community_engagement,
            duration=event.duration,
        )
