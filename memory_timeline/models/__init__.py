"""
Database models for the memory timeline cross-reference engine.

Architecture: Event (read-only journal data) → EventEmbedding → CrossReference.
"""

from memory_timeline.models.cross_reference import RELATIONSHIP_TYPES, CrossReference
from memory_timeline.models.event import (
    DEFAULT_CATEGORY,
    EVENT_CATEGORIES,
    Era,
    Event,
    EventTag,
    Tag,
)
from memory_timeline.models.event_embedding import EventEmbedding

__all__ = [
    # Journal data
    "Era",
    "Event",
    "EventTag",
    "Tag",
    "EVENT_CATEGORIES",
    "DEFAULT_CATEGORY",
    # Engine data
    "EventEmbedding",
    "CrossReference",
    "RELATIONSHIP_TYPES",
]
