"""
Timeline event, era and tag models.

These tables are owned by the journal's CRUD layer. The cross-reference
engine only reads them, apart from the cascade relationships that remove an
event's embedding and cross references when the event itself is deleted.

Architecture:
    Era <- Event -> EventTag -> Tag
    Event -> EventEmbedding (one-to-one)
    Event <-> CrossReference <-> Event
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import relationship, validates

from memory_timeline.models.base import Base, TimestampMixin, new_id

EVENT_CATEGORIES = (
    "milestone",
    "work",
    "education",
    "relationship",
    "travel",
    "achievement",
    "challenge",
    "era",
    "other",
)

DEFAULT_CATEGORY = "other"


class Era(Base, TimestampMixin):
    """A named life phase that groups events."""

    __tablename__ = "eras"

    era_id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    start_date = Column(String(10), nullable=False, comment="ISO date YYYY-MM-DD")
    end_date = Column(String(10), nullable=True, comment="NULL for ongoing eras")
    color_code = Column(String(9), nullable=False, default="#888888")
    description = Column(Text, nullable=True)

    events = relationship("Event", back_populates="era")

    def __repr__(self):
        return f"<Era(era_id={self.era_id}, name='{self.name}')>"


class Event(Base, TimestampMixin):
    """
    A single entry on the personal timeline.

    Dates are ISO 8601 strings (YYYY-MM-DD) as written by the journal, which
    keeps month bucketing a plain prefix operation.
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_start_date", "start_date"),
        Index("ix_events_category", "category"),
        Index("ix_events_era_id", "era_id"),
    )

    event_id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    start_date = Column(String(10), nullable=False, comment="ISO date YYYY-MM-DD")
    end_date = Column(String(10), nullable=True, comment="NULL for point events")
    description = Column(Text, nullable=True)
    category = Column(String(32), nullable=False, default=DEFAULT_CATEGORY)
    era_id = Column(
        String(36), ForeignKey("eras.era_id", ondelete="SET NULL"), nullable=True
    )
    raw_transcript = Column(Text, nullable=True)

    era = relationship("Era", back_populates="events")

    tag_links = relationship(
        "EventTag",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    embedding = relationship(
        "EventEmbedding",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("category")
    def validate_category(self, key, value):
        if value is None:
            return DEFAULT_CATEGORY
        value = value.lower()
        if value not in EVENT_CATEGORIES:
            raise ValueError(
                f"Unknown event category '{value}'. Expected one of {EVENT_CATEGORIES}."
            )
        return value

    def embedding_text(self) -> str:
        """Text fed to the embedding provider: title, description and transcript."""
        parts = [self.title, self.description, self.raw_transcript]
        return " ".join(part for part in parts if part)

    def __repr__(self):
        return (
            f"<Event(event_id={self.event_id}, title='{(self.title or '')[:50]}', "
            f"start_date='{self.start_date}')>"
        )


class Tag(Base):
    __tablename__ = "tags"

    tag_id = Column(String(36), primary_key=True, default=new_id)
    tag_name = Column(String, nullable=False, unique=True)

    event_links = relationship("EventTag", back_populates="tag")


class EventTag(Base):
    """Tag attached to an event, manually or by a suggestion the user accepted."""

    __tablename__ = "event_tags"
    __table_args__ = (
        CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 1",
            name="ck_event_tags_confidence_range",
        ),
    )

    event_id = Column(
        String(36),
        ForeignKey("events.event_id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id = Column(
        String(36),
        ForeignKey("tags.tag_id", ondelete="CASCADE"),
        primary_key=True,
    )
    confidence_score = Column(Float, nullable=False, default=1.0)
    is_manual = Column(Boolean, nullable=False, default=True)

    event = relationship("Event", back_populates="tag_links")
    tag = relationship("Tag", back_populates="event_links")
