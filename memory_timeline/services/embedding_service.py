"""
Embedding Service - embedding generation and similarity lookup for timeline events

Binds one configured embedding provider to the embedding store. All public
coroutines return result envelopes: missing events, missing embeddings and
provider failures come back as `success=False` with a typed reason.
"""

from __future__ import annotations

import asyncio
import time

from memory_timeline.config import Settings
from memory_timeline.db_handlers import EventDBHandler, EventEmbeddingDBHandler
from memory_timeline.errors import CrossReferenceEngineError, EventNotFoundError
from memory_timeline.schemas import (
    EmbeddingBatchResult,
    EmbeddingResult,
    ItemError,
    OperationResult,
    SimilarEvent,
    SimilarEventsResult,
)
from memory_timeline.services.embedding_providers import (
    EmbeddingConfig,
    EmbeddingProvider,
    create_embedding_provider,
)
from memory_timeline.services.similarity_search import SimilaritySearchEngine
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("embedding_service")


class EmbeddingService:
    def __init__(
        self,
        provider: EmbeddingProvider,
        embedding_db_handler: EventEmbeddingDBHandler | None = None,
        event_db_handler: EventDBHandler | None = None,
        batch_delay_seconds: float = 0.1,
    ):
        self.provider = provider
        self.embedding_db_handler = embedding_db_handler or EventEmbeddingDBHandler()
        self.event_db_handler = event_db_handler or EventDBHandler()
        self.similarity_engine = SimilaritySearchEngine(self.embedding_db_handler)
        self.batch_delay_seconds = batch_delay_seconds

        logger.info(
            f"Embedding service initialized: {provider.name}/{provider.model} "
            f"(dim: {provider.dimension})"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> EmbeddingService:
        provider = create_embedding_provider(EmbeddingConfig.from_settings(settings))
        return cls(provider, batch_delay_seconds=settings.embedding_batch_delay_seconds)

    async def generate_event_embedding(self, event_id: str) -> EmbeddingResult:
        """Embed an event's title, description and transcript, replacing any stored vector."""
        try:
            event = await self.event_db_handler.get(event_id)
            if event is None:
                raise EventNotFoundError(event_id)

            text = event.embedding_text()
            if not text.strip():
                return EmbeddingResult(
                    success=False,
                    event_id=event_id,
                    error_type="no_text",
                    error="No text available to embed",
                )

            start_time = time.perf_counter()
            vector = await self.provider.embed(text)
            embedding_id = await self.embedding_db_handler.upsert_embedding(
                event_id,
                vector,
                self.provider.name,
                self.provider.model,
                self.provider.dimension,
            )
        except CrossReferenceEngineError as e:
            logger.warning(f"Could not embed event {event_id}: {e}")
            return EmbeddingResult.failure(e, event_id=event_id)

        logger.info(
            f"Generated embedding for event {event_id} in {time.perf_counter() - start_time:.3f}s"
        )
        return EmbeddingResult(
            event_id=event_id,
            embedding_id=embedding_id,
            dimension=self.provider.dimension,
        )

    async def generate_all_missing_embeddings(self) -> EmbeddingBatchResult:
        """
        Embed every event that has no embedding yet.

        One event's failure is recorded in `errors` and never stops the batch.
        Only failing to list the events at all propagates.
        """
        events = await self.event_db_handler.list_events_without_embedding()
        logger.info(f"Found {len(events)} events without embeddings")

        result = EmbeddingBatchResult(total=len(events))
        for index, event in enumerate(events):
            try:
                item = await self.generate_event_embedding(event.event_id)
            except Exception as e:
                logger.error(
                    f"Unexpected error embedding event {event.event_id}: {e}",
                    exc_info=True,
                )
                item = EmbeddingResult(success=False, error=str(e))

            if item.success:
                result.succeeded += 1
            else:
                result.failed += 1
                result.errors.append(
                    ItemError(
                        event_id=event.event_id,
                        error=item.error or "unknown error",
                        error_type=item.error_type,
                    )
                )

            if index < len(events) - 1 and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)

        logger.info(
            f"Embedding batch complete: {result.succeeded} succeeded, {result.failed} failed"
        )
        return result

    async def find_similar_events(
        self, event_id: str, threshold: float, limit: int = 10
    ) -> SimilarEventsResult:
        try:
            matches = await self.similarity_engine.find_similar(event_id, threshold, limit)
        except CrossReferenceEngineError as e:
            logger.warning(f"Similarity lookup for event {event_id} failed: {e}")
            return SimilarEventsResult.failure(e)

        events = {
            event.event_id: event
            for event in await self.event_db_handler.get_events_by_ids(
                [m.event_id for m in matches]
            )
        }
        similar_events = []
        for match in matches:
            event = events.get(match.event_id)
            similar_events.append(
                SimilarEvent(
                    event_id=match.event_id,
                    similarity_score=match.similarity_score,
                    title=event.title if event else None,
                    start_date=event.start_date if event else None,
                    end_date=event.end_date if event else None,
                    description=event.description if event else None,
                    category=event.category if event else None,
                )
            )
        return SimilarEventsResult(similar_events=similar_events, count=len(similar_events))

    async def on_event_created(
        self, event_id: str, auto_generate: bool
    ) -> EmbeddingResult | None:
        """Hook for the journal's create path; embeds immediately when enabled."""
        if not auto_generate:
            return None
        return await self.generate_event_embedding(event_id)

    async def delete_event_embedding(self, event_id: str) -> OperationResult:
        deleted = await self.embedding_db_handler.delete_embedding(event_id)
        return OperationResult(
            message="Embedding deleted" if deleted else "Event had no embedding"
        )

    async def clear_all_embeddings(self) -> OperationResult:
        """Drop every stored vector; required before switching provider or model."""
        cleared = await self.embedding_db_handler.clear_all()
        return OperationResult(message=f"Cleared {cleared} embeddings")

    async def close(self):
        await self.provider.close()
