from __future__ import annotations

import math
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from memory_timeline.db_handlers.base import BaseDBHandler, check_local_db
from memory_timeline.models.cross_reference import RELATIONSHIP_TYPES, CrossReference
from memory_timeline.models.event import Event
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("db_handlers.cross_reference")


def canonical_pair(event_id_a: str, event_id_b: str) -> tuple[str, str]:
    """Order-independent key for an undirected pair of events."""
    if event_id_a == event_id_b:
        raise ValueError(f"An event cannot reference itself ({event_id_a})")
    return (event_id_a, event_id_b) if event_id_a < event_id_b else (event_id_b, event_id_a)


class CrossReferenceDBHandler(BaseDBHandler[CrossReference]):
    def __init__(self):
        super().__init__(CrossReference)

    @check_local_db
    async def upsert(
        self,
        event_id_a: str,
        event_id_b: str,
        relationship_type: str,
        confidence_score: float,
        explanation: str | None,
        *,
        db: AsyncSession = None,
    ) -> str:
        """
        Store the relationship under its canonical pair and return its reference_id.

        Rediscovering a pair, from either direction, overwrites type,
        confidence, explanation and discovery time on the existing row.
        """
        if relationship_type not in RELATIONSHIP_TYPES:
            raise ValueError(f"Unknown relationship type '{relationship_type}'")
        if not math.isfinite(float(confidence_score)):
            raise ValueError(f"Confidence score must be finite, got {confidence_score}")
        event_id_1, event_id_2 = canonical_pair(event_id_a, event_id_b)
        confidence_score = min(max(float(confidence_score), 0.0), 1.0)

        existing = await self._get_canonical(event_id_1, event_id_2, db=db)
        if existing:
            existing.relationship_type = relationship_type
            existing.confidence_score = confidence_score
            existing.explanation = explanation
            existing.discovered_at = datetime.now(timezone.utc)
            await db.flush()
            logger.debug(f"Updated cross reference {existing.reference_id}")
            return existing.reference_id

        reference = CrossReference(
            event_id_1=event_id_1,
            event_id_2=event_id_2,
            relationship_type=relationship_type,
            confidence_score=confidence_score,
            explanation=explanation,
        )
        db.add(reference)
        await db.flush()
        logger.debug(f"Created cross reference {reference.reference_id}")
        return reference.reference_id

    async def _get_canonical(
        self, event_id_1: str, event_id_2: str, *, db: AsyncSession
    ) -> CrossReference | None:
        stmt = select(CrossReference).where(
            CrossReference.event_id_1 == event_id_1,
            CrossReference.event_id_2 == event_id_2,
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @check_local_db
    async def get_pair(
        self, event_id_a: str, event_id_b: str, *, db: AsyncSession = None
    ) -> CrossReference | None:
        if event_id_a == event_id_b:
            return None
        return await self._get_canonical(*canonical_pair(event_id_a, event_id_b), db=db)

    @check_local_db
    async def get_for_event(
        self, event_id: str, *, db: AsyncSession = None
    ) -> list[dict]:
        """All references touching the event, highest confidence first, with both events' titles and dates."""
        event_1 = aliased(Event)
        event_2 = aliased(Event)
        stmt = (
            select(
                CrossReference,
                event_1.title,
                event_1.start_date,
                event_2.title,
                event_2.start_date,
            )
            .join(event_1, event_1.event_id == CrossReference.event_id_1)
            .join(event_2, event_2.event_id == CrossReference.event_id_2)
            .where(
                or_(
                    CrossReference.event_id_1 == event_id,
                    CrossReference.event_id_2 == event_id,
                )
            )
            .order_by(
                CrossReference.confidence_score.desc(), CrossReference.reference_id
            )
        )
        result = await db.execute(stmt)

        rows = []
        for reference, title_1, date_1, title_2, date_2 in result.all():
            row = reference.to_dict()
            row.update(
                event1_title=title_1,
                event1_date=date_1,
                event2_title=title_2,
                event2_date=date_2,
            )
            rows.append(row)
        return rows
