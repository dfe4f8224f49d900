from memory_timeline.dependencies.engine import (
    get_embedding_service,
    get_engine,
    get_orchestrator,
    get_pattern_detector,
    get_tag_suggestion_engine,
)

__all__ = [
    "get_engine",
    "get_embedding_service",
    "get_orchestrator",
    "get_pattern_detector",
    "get_tag_suggestion_engine",
]
