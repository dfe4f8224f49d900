from fastapi import Depends, HTTPException, Request, status

from memory_timeline.services.embedding_service import EmbeddingService
from memory_timeline.services.engine import TimelineEngine
from memory_timeline.services.pattern_detector import PatternDetector
from memory_timeline.services.tag_suggestion import TagSuggestionEngine
from memory_timeline.services.timeline_analysis import TimelineAnalysisOrchestrator
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("dependencies")


def get_engine(request: Request) -> TimelineEngine:
    """FastAPI dependency to get the engine built at startup."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        logger.critical(
            "Engine dependency requested, but no engine is available. This indicates a startup issue."
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cross-reference engine is not available.",
        )
    return engine


def get_embedding_service(
    engine: TimelineEngine = Depends(get_engine),
) -> EmbeddingService:
    return engine.embedding_service


def get_orchestrator(
    engine: TimelineEngine = Depends(get_engine),
) -> TimelineAnalysisOrchestrator:
    return engine.orchestrator


def get_pattern_detector(engine: TimelineEngine = Depends(get_engine)) -> PatternDetector:
    return engine.pattern_detector


def get_tag_suggestion_engine(
    engine: TimelineEngine = Depends(get_engine),
) -> TagSuggestionEngine:
    return engine.tag_suggestion_engine
