"""
HTTP API Routes - REST endpoints for embeddings, cross-reference analysis,
pattern detection and tag suggestion.

Expected domain conditions (event not embedded, provider not configured, ...)
come back as result payloads with `success: false`. Only unexpected failures
turn into HTTP errors.
"""

from fastapi import APIRouter, Depends, HTTPException

from memory_timeline.dependencies import (
    get_embedding_service,
    get_engine,
    get_orchestrator,
    get_pattern_detector,
    get_tag_suggestion_engine,
)
from memory_timeline.errors import (
    AnalysisAlreadyRunningError,
    CrossReferenceEngineError,
)
from memory_timeline.schemas import (
    AnalysisRun,
    AnalyzeRequest,
    CrossReferencesResult,
    EmbeddingBatchResult,
    EmbeddingProviderRequest,
    EmbeddingResult,
    EventAnalysisResult,
    FindSimilarRequest,
    OperationResult,
    PatternDetectionResult,
    SimilarEventsResult,
    SuggestTagsRequest,
    TagSuggestionResult,
)
from memory_timeline.services.embedding_providers import EmbeddingConfig
from memory_timeline.services.embedding_service import EmbeddingService
from memory_timeline.services.engine import TimelineEngine
from memory_timeline.services.pattern_detector import PatternDetector
from memory_timeline.services.tag_suggestion import TagSuggestionEngine
from memory_timeline.services.timeline_analysis import TimelineAnalysisOrchestrator
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("api")

router = APIRouter(prefix="/api")


@router.get("/")
async def read_root():
    """API health check endpoint."""
    return {"message": "Memory Timeline cross-reference API is running!"}


# ===========================================
# EMBEDDINGS
# ===========================================


@router.post("/embeddings/events/{event_id}", response_model=EmbeddingResult)
async def generate_event_embedding(
    event_id: str,
    embedding_service: EmbeddingService = Depends(get_embedding_service),
):
    try:
        return await embedding_service.generate_event_embedding(event_id)
    except Exception as e:
        logger.error(f"Error embedding event {event_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to generate embedding: {str(e)}"
        ) from e


@router.post("/embeddings/generate-missing", response_model=EmbeddingBatchResult)
async def generate_all_missing_embeddings(
    embedding_service: EmbeddingService = Depends(get_embedding_service),
):
    try:
        return await embedding_service.generate_all_missing_embeddings()
    except Exception as e:
        logger.error(f"Error generating missing embeddings: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to generate embeddings: {str(e)}"
        ) from e


@router.post("/embeddings/events/{event_id}/similar", response_model=SimilarEventsResult)
async def find_similar_events(
    request: FindSimilarRequest,
    event_id: str,
    engine: TimelineEngine = Depends(get_engine),
):
    threshold = (
        request.threshold
        if request.threshold is not None
        else engine.config.similarity_threshold
    )
    try:
        return await engine.embedding_service.find_similar_events(
            event_id, threshold, request.limit
        )
    except Exception as e:
        logger.error(f"Error finding events similar to {event_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to find similar events: {str(e)}"
        ) from e


@router.delete("/embeddings/events/{event_id}", response_model=OperationResult)
async def delete_event_embedding(
    event_id: str,
    embedding_service: EmbeddingService = Depends(get_embedding_service),
):
    return await embedding_service.delete_event_embedding(event_id)


@router.delete("/embeddings", response_model=OperationResult)
async def clear_all_embeddings(
    embedding_service: EmbeddingService = Depends(get_embedding_service),
):
    return await embedding_service.clear_all_embeddings()


@router.put("/embeddings/provider", response_model=OperationResult)
async def set_embedding_provider(
    request: EmbeddingProviderRequest,
    engine: TimelineEngine = Depends(get_engine),
):
    """
    Switch the embedding provider and model.

    Existing vectors are kept; clear them when the new model's dimension differs.
    """
    config = EmbeddingConfig(
        provider=request.provider.lower(),
        model=request.model,
        api_key=request.api_key,
        base_url=request.base_url,
        request_timeout=engine.config.embedding_request_timeout,
    )
    try:
        await engine.reconfigure_embeddings(config)
    except CrossReferenceEngineError as e:
        logger.warning(f"Rejected embedding provider change: {e}")
        return OperationResult.failure(e)

    provider = engine.embedding_service.provider
    return OperationResult(
        message=f"Embedding provider set to {provider.name}/{provider.model} "
        f"(dimension {provider.dimension})"
    )


@router.post("/events/{event_id}/created", response_model=EmbeddingResult)
async def on_event_created(
    event_id: str,
    engine: TimelineEngine = Depends(get_engine),
):
    """Hook called by the journal after it stores a new event."""
    result = await engine.embedding_service.on_event_created(
        event_id, engine.config.auto_generate_embeddings
    )
    if result is None:
        return EmbeddingResult(
            event_id=event_id, message="Automatic embedding generation is disabled"
        )
    return result


# ===========================================
# CROSS-REFERENCE ANALYSIS
# ===========================================


@router.post("/analysis/events/{event_id}", response_model=EventAnalysisResult)
async def analyze_event(
    request: AnalyzeRequest,
    event_id: str,
    engine: TimelineEngine = Depends(get_engine),
):
    threshold = (
        request.threshold
        if request.threshold is not None
        else engine.config.similarity_threshold
    )
    try:
        return await engine.orchestrator.analyze_event(event_id, threshold)
    except Exception as e:
        logger.error(f"Error analyzing event {event_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to analyze event: {str(e)}"
        ) from e


@router.post("/analysis/timeline", response_model=AnalysisRun)
async def analyze_full_timeline(
    request: AnalyzeRequest,
    engine: TimelineEngine = Depends(get_engine),
):
    threshold = (
        request.threshold
        if request.threshold is not None
        else engine.config.similarity_threshold
    )
    try:
        return await engine.orchestrator.analyze_full_timeline(threshold)
    except AnalysisAlreadyRunningError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Timeline analysis failed to start: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to analyze timeline: {str(e)}"
        ) from e


@router.post("/analysis/cancel", response_model=OperationResult)
async def cancel_timeline_analysis(
    orchestrator: TimelineAnalysisOrchestrator = Depends(get_orchestrator),
):
    if orchestrator.cancel():
        return OperationResult(message="Cancellation requested")
    return OperationResult(
        success=False, error_type="not_running", error="No timeline analysis is running"
    )


@router.get("/events/{event_id}/cross-references", response_model=CrossReferencesResult)
async def get_cross_references(
    event_id: str,
    orchestrator: TimelineAnalysisOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.get_cross_references(event_id)


# ===========================================
# PATTERNS & TAGS
# ===========================================


@router.get("/patterns", response_model=PatternDetectionResult)
async def detect_patterns(
    pattern_detector: PatternDetector = Depends(get_pattern_detector),
):
    try:
        return await pattern_detector.detect_patterns()
    except Exception as e:
        logger.error(f"Error detecting patterns: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to detect patterns: {str(e)}"
        ) from e


@router.post("/events/{event_id}/tag-suggestions", response_model=TagSuggestionResult)
async def suggest_tags(
    request: SuggestTagsRequest,
    event_id: str,
    tag_suggestion_engine: TagSuggestionEngine = Depends(get_tag_suggestion_engine),
):
    try:
        return await tag_suggestion_engine.suggest_tags(event_id, request.limit)
    except Exception as e:
        logger.error(f"Error suggesting tags for {event_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to suggest tags: {str(e)}"
        ) from e
