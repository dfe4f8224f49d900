from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from memory_timeline.db_handlers.base import BaseDBHandler, check_local_db
from memory_timeline.models.event import Event
from memory_timeline.models.event_embedding import EventEmbedding
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("db_handlers.event_embedding")


class EventEmbeddingDBHandler(BaseDBHandler[EventEmbedding]):
    """
    Embedding store: at most one vector per event.

    Writing an embedding for an event that already has one replaces the
    whole row, including its embedding_id.
    """

    def __init__(self):
        super().__init__(EventEmbedding)

    @check_local_db
    async def upsert_embedding(
        self,
        event_id: str,
        vector: list[float],
        provider: str,
        model: str,
        dimension: int,
        *,
        db: AsyncSession = None,
    ) -> str:
        await db.execute(delete(EventEmbedding).where(EventEmbedding.event_id == event_id))
        await db.flush()

        embedding = EventEmbedding(
            event_id=event_id,
            vector=[float(x) for x in vector],
            provider=provider,
            model=model,
            dimension=dimension,
        )
        db.add(embedding)
        await db.flush()
        logger.debug(
            f"Stored {provider}/{model} embedding (dim {dimension}) for event {event_id}"
        )
        return embedding.embedding_id

    @check_local_db
    async def get_embedding(
        self, event_id: str, *, db: AsyncSession = None
    ) -> EventEmbedding | None:
        stmt = select(EventEmbedding).where(EventEmbedding.event_id == event_id)
        result = await db.execute(stmt)
        return result.scalars().first()

    @check_local_db
    async def list_embedded_event_ids(self, *, db: AsyncSession = None) -> set[str]:
        result = await db.execute(select(EventEmbedding.event_id))
        return set(result.scalars().all())

    @check_local_db
    async def list_vectors_excluding(
        self, event_id: str, *, db: AsyncSession = None
    ) -> list[tuple[str, list[float]]]:
        """Every stored (event_id, vector) except the given event's, in id order."""
        stmt = (
            select(EventEmbedding.event_id, EventEmbedding.vector)
            .join(Event, Event.event_id == EventEmbedding.event_id)
            .where(EventEmbedding.event_id != event_id)
            .order_by(EventEmbedding.event_id)
        )
        result = await db.execute(stmt)
        return [(row_event_id, vector) for row_event_id, vector in result.all()]

    @check_local_db
    async def delete_embedding(self, event_id: str, *, db: AsyncSession = None) -> bool:
        result = await db.execute(
            delete(EventEmbedding).where(EventEmbedding.event_id == event_id)
        )
        return result.rowcount > 0

    @check_local_db
    async def clear_all(self, *, db: AsyncSession = None) -> int:
        result = await db.execute(delete(EventEmbedding))
        logger.info(f"Cleared {result.rowcount} embeddings")
        return result.rowcount
