"""
Vector embedding stored for a timeline event.

One row per event. The vector is kept as a JSON array so the table is
portable between SQLite and PostgreSQL; similarity search is a full scan in
application code, so no vector index is needed.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql.functions import now as db_now

from memory_timeline.models.base import Base, new_id


class EventEmbedding(Base):
    """
    Embedding of an event's text produced by one (provider, model) pair.

    Vectors from different providers or models live in different spaces and
    must never be compared; clear the table before switching provider.
    """

    __tablename__ = "event_embeddings"

    embedding_id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(
        String(36),
        ForeignKey("events.event_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    vector = Column(JSON, nullable=False, comment="Ordered list of floats")
    provider = Column(String(32), nullable=False)
    model = Column(String, nullable=False)
    dimension = Column(Integer, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        server_default=db_now(),
        nullable=False,
    )

    event = relationship("Event", back_populates="embedding")

    def __repr__(self):
        return (
            f"<EventEmbedding(event_id={self.event_id}, "
            f"provider='{self.provider}', model='{self.model}', dim={self.dimension})>"
        )
