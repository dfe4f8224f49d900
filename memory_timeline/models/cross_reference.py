"""
Undirected, typed relationship between two timeline events.

The pair is always stored in canonical order (event_id_1 < event_id_2), so
the unique constraint on the pair makes rediscovery from either direction
hit the same row.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql.functions import now as db_now

from memory_timeline.models.base import Base, new_id

RELATIONSHIP_TYPES = ("causal", "thematic", "temporal", "person", "location", "other")


class CrossReference(Base):
    __tablename__ = "cross_references"
    __table_args__ = (
        UniqueConstraint("event_id_1", "event_id_2", name="uq_cross_references_pair"),
        CheckConstraint("event_id_1 < event_id_2", name="ck_cross_references_order"),
        CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 1",
            name="ck_cross_references_confidence_range",
        ),
        CheckConstraint(
            "relationship_type IN ("
            + ", ".join(f"'{t}'" for t in RELATIONSHIP_TYPES)
            + ")",
            name="ck_cross_references_type",
        ),
    )

    reference_id = Column(String(36), primary_key=True, default=new_id)
    event_id_1 = Column(
        String(36),
        ForeignKey("events.event_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_id_2 = Column(
        String(36),
        ForeignKey("events.event_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relationship_type = Column(String(16), nullable=False)
    confidence_score = Column(Float, nullable=False)
    explanation = Column(Text, nullable=True)
    discovered_at = Column(
        DateTime(timezone=True),
        server_default=db_now(),
        nullable=False,
    )

    def __repr__(self):
        return (
            f"<CrossReference({self.event_id_1} <-> {self.event_id_2}, "
            f"type='{self.relationship_type}', confidence={self.confidence_score})>"
        )
