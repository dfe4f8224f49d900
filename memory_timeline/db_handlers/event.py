from __future__ import annotations

from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memory_timeline.db_handlers.base import BaseDBHandler, check_local_db
from memory_timeline.models.event import Era, Event, EventTag, Tag
from memory_timeline.models.event_embedding import EventEmbedding
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("db_handlers.event")


class EventDBHandler(BaseDBHandler[Event]):
    """Read-only queries the engine needs from the journal's event tables."""

    def __init__(self):
        super().__init__(Event)

    @check_local_db
    async def get_events_by_ids(
        self, event_ids: list[str], *, db: AsyncSession = None
    ) -> list[Event]:
        if not event_ids:
            return []

        try:
            stmt = select(Event).where(Event.event_id.in_(event_ids))
            result = await db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving events by IDs: {e}")
            raise

    @check_local_db
    async def list_ids_with_embedding(self, *, db: AsyncSession = None) -> list[str]:
        """Event ids that have an embedding, ascending."""
        stmt = (
            select(Event.event_id)
            .join(EventEmbedding, EventEmbedding.event_id == Event.event_id)
            .order_by(Event.event_id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def list_events_without_embedding(
        self, *, db: AsyncSession = None
    ) -> list[Event]:
        stmt = (
            select(Event)
            .outerjoin(EventEmbedding, EventEmbedding.event_id == Event.event_id)
            .where(EventEmbedding.embedding_id.is_(None))
            .order_by(Event.event_id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def list_tags_for_events(
        self, event_ids: list[str], *, db: AsyncSession = None
    ) -> dict[str, list[tuple[str, float]]]:
        """Map each event id to its (tag_name, confidence_score) pairs."""
        if not event_ids:
            return {}

        stmt = (
            select(EventTag.event_id, Tag.tag_name, EventTag.confidence_score)
            .join(Tag, Tag.tag_id == EventTag.tag_id)
            .where(EventTag.event_id.in_(event_ids))
            .order_by(EventTag.event_id, Tag.tag_name)
        )
        result = await db.execute(stmt)

        tags: dict[str, list[tuple[str, float]]] = defaultdict(list)
        for event_id, tag_name, confidence in result.all():
            tags[event_id].append(
                (tag_name, 1.0 if confidence is None else float(confidence))
            )
        return dict(tags)

    @check_local_db
    async def count_by_category(
        self,
        min_count: int,
        exclude_category: str,
        *,
        db: AsyncSession = None,
    ) -> list[dict]:
        count_col = func.count(Event.event_id).label("count")
        stmt = (
            select(Event.category, count_col)
            .where(Event.category.is_not(None), Event.category != exclude_category)
            .group_by(Event.category)
            .having(func.count(Event.event_id) >= min_count)
            .order_by(count_col.desc(), Event.category)
        )
        result = await db.execute(stmt)
        return [{"category": c, "count": n} for c, n in result.all()]

    @check_local_db
    async def count_by_month(
        self, min_count: int, limit: int, *, db: AsyncSession = None
    ) -> list[dict]:
        # start_date is ISO text, so the first seven characters are YYYY-MM
        month = func.substr(Event.start_date, 1, 7).label("month")
        count_col = func.count(Event.event_id).label("event_count")
        stmt = (
            select(month, count_col)
            .group_by(month)
            .having(func.count(Event.event_id) >= min_count)
            .order_by(count_col.desc(), month)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return [{"month": m, "event_count": n} for m, n in result.all()]

    @check_local_db
    async def list_era_events_in_categories(
        self, categories: tuple[str, ...], *, db: AsyncSession = None
    ) -> list[dict]:
        stmt = (
            select(
                Event.event_id,
                Event.title,
                Event.start_date,
                Event.category,
                Era.name,
            )
            .join(Era, Era.era_id == Event.era_id)
            .where(Event.category.in_(categories))
            .order_by(Event.start_date, Event.event_id)
        )
        result = await db.execute(stmt)
        return [
            {
                "event_id": event_id,
                "title": title,
                "start_date": start_date,
                "category": category,
                "era_name": era_name,
            }
            for event_id, title, start_date, category, era_name in result.all()
        ]
