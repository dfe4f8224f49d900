from memory_timeline.db_handlers.base import BaseDBHandler, check_local_db
from memory_timeline.db_handlers.cross_reference import (
    CrossReferenceDBHandler,
    canonical_pair,
)
from memory_timeline.db_handlers.event import EventDBHandler
from memory_timeline.db_handlers.event_embedding import EventEmbeddingDBHandler

__all__ = [
    "BaseDBHandler",
    "check_local_db",
    "canonical_pair",
    "CrossReferenceDBHandler",
    "EventDBHandler",
    "EventEmbeddingDBHandler",
]
