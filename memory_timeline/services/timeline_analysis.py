"""
Timeline Analysis - discovers cross-references between timeline events.

Single-event analysis finds semantically similar neighbours and asks the
relationship classifier about each pair. It does not write anything.

Full-timeline analysis walks every embedded event in id order, persists each
discovered relationship through the cross-reference store and pauses between
events to stay under external rate limits. One event failing is recorded and
the run moves on. A run can be stopped between events with a CancellationToken.
"""

from __future__ import annotations

import asyncio
import time

from memory_timeline.db_handlers import CrossReferenceDBHandler, EventDBHandler
from memory_timeline.errors import (
    AnalysisAlreadyRunningError,
    CrossReferenceEngineError,
    EventNotFoundError,
)
from memory_timeline.schemas import (
    AnalysisRun,
    CrossReferenceCandidate,
    CrossReferenceDetail,
    CrossReferencesResult,
    EventAnalysisResult,
    ItemError,
)
from memory_timeline.services.relationship_classifier import RelationshipClassifier
from memory_timeline.services.similarity_search import SimilaritySearchEngine
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("timeline_analysis")


class CancellationToken:
    """Cooperative stop signal checked by long-running analysis between events."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class TimelineAnalysisOrchestrator:
    def __init__(
        self,
        similarity_engine: SimilaritySearchEngine,
        classifier: RelationshipClassifier,
        event_db_handler: EventDBHandler | None = None,
        cross_reference_db_handler: CrossReferenceDBHandler | None = None,
        candidate_limit: int = 20,
        delay_seconds: float = 0.5,
    ):
        self.similarity_engine = similarity_engine
        self.classifier = classifier
        self.event_db_handler = event_db_handler or EventDBHandler()
        self.cross_reference_db_handler = (
            cross_reference_db_handler or CrossReferenceDBHandler()
        )
        self.candidate_limit = candidate_limit
        self.delay_seconds = delay_seconds
        self._active_token: CancellationToken | None = None

    @property
    def is_running(self) -> bool:
        return self._active_token is not None

    async def analyze_event(self, event_id: str, threshold: float) -> EventAnalysisResult:
        """Classify the event against its nearest neighbours. Nothing is persisted."""
        try:
            return await self._analyze_event(event_id, threshold)
        except CrossReferenceEngineError as e:
            logger.warning(f"Analysis of event {event_id} failed: {e}")
            return EventAnalysisResult.failure(e, source_event_id=event_id)

    async def _analyze_event(self, event_id: str, threshold: float) -> EventAnalysisResult:
        matches = await self.similarity_engine.find_similar(
            event_id, threshold, self.candidate_limit
        )
        if not matches:
            return EventAnalysisResult(
                source_event_id=event_id, message="No similar events found"
            )

        events = {
            event.event_id: event
            for event in await self.event_db_handler.get_events_by_ids(
                [event_id] + [m.event_id for m in matches]
            )
        }
        source_event = events.get(event_id)
        if source_event is None:
            raise EventNotFoundError(event_id)

        cross_references = []
        for match in matches:
            candidate = events.get(match.event_id)
            if candidate is None:
                continue

            classification = await self.classifier.classify(source_event, candidate)
            if not classification.has_relationship:
                continue

            cross_references.append(
                CrossReferenceCandidate(
                    event_id_2=candidate.event_id,
                    relationship_type=classification.type,
                    confidence_score=classification.confidence,
                    explanation=classification.explanation,
                    similarity_score=match.similarity_score,
                )
            )

        logger.debug(
            f"Event {event_id}: {len(cross_references)} relationships among "
            f"{len(matches)} similar events"
        )
        return EventAnalysisResult(
            source_event_id=event_id, cross_references=cross_references
        )

    async def analyze_full_timeline(
        self, threshold: float, cancel_token: CancellationToken | None = None
    ) -> AnalysisRun:
        """
        Analyze every embedded event and persist all discovered cross-references.

        Per-event failures land in the run's error list. Only failing to
        enumerate the events raises. Only one run may be active per
        orchestrator; a second concurrent call raises AnalysisAlreadyRunningError.
        """
        if self.is_running:
            raise AnalysisAlreadyRunningError()
        cancel_token = cancel_token or CancellationToken()
        self._active_token = cancel_token
        try:
            return await self._run_full_timeline(threshold, cancel_token)
        finally:
            self._active_token = None

    async def _run_full_timeline(
        self, threshold: float, cancel_token: CancellationToken
    ) -> AnalysisRun:
        event_ids = await self.event_db_handler.list_ids_with_embedding()
        run = AnalysisRun(total_events=len(event_ids))
        logger.info(f"Starting full timeline analysis over {len(event_ids)} events")
        start_time = time.perf_counter()

        for index, event_id in enumerate(event_ids):
            if cancel_token.cancelled:
                run.cancelled = True
                logger.warning(
                    f"Timeline analysis cancelled after {run.events_processed} events"
                )
                break

            try:
                found = await self._analyze_and_store(event_id, threshold)
                run.cross_references_found += found
            except Exception as e:
                logger.error(f"Error analyzing event {event_id}: {e}", exc_info=True)
                run.errors.append(
                    ItemError(
                        event_id=event_id,
                        error=str(e),
                        error_type=getattr(e, "error_type", type(e).__name__),
                    )
                )
            run.events_processed += 1

            if index < len(event_ids) - 1 and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)

        if run.cancelled:
            run.message = "Analysis cancelled"
        logger.info(
            f"Timeline analysis finished in {time.perf_counter() - start_time:.2f}s: "
            f"{run.events_processed}/{run.total_events} events, "
            f"{run.cross_references_found} cross references, {len(run.errors)} errors"
        )
        return run

    async def _analyze_and_store(self, event_id: str, threshold: float) -> int:
        result = await self._analyze_event(event_id, threshold)
        for reference in result.cross_references:
            await self.cross_reference_db_handler.upsert(
                event_id,
                reference.event_id_2,
                reference.relationship_type,
                reference.confidence_score,
                reference.explanation,
            )
        return len(result.cross_references)

    def cancel(self) -> bool:
        """Signal the running full-timeline analysis to stop; False when none is running."""
        if self._active_token is None:
            return False
        self._active_token.cancel()
        return True

    async def get_cross_references(self, event_id: str) -> CrossReferencesResult:
        event = await self.event_db_handler.get(event_id)
        if event is None:
            return CrossReferencesResult.failure(EventNotFoundError(event_id))

        rows = await self.cross_reference_db_handler.get_for_event(event_id)
        return CrossReferencesResult(
            cross_references=[CrossReferenceDetail.model_validate(row) for row in rows]
        )
