from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memory_timeline.errors import CrossReferenceEngineError

RelationshipType = Literal["causal", "thematic", "temporal", "person", "location", "other"]


# ===========================================
# RESULT ENVELOPE
# ===========================================


class OperationResult(BaseModel):
    """
    Envelope returned by every exposed engine operation.

    Expected domain conditions (no embedding, provider not configured, ...)
    come back as `success=False` with a typed `error_type` instead of raising.
    """

    success: bool = True
    error_type: str | None = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def failure(cls, exc: CrossReferenceEngineError, **kwargs: Any):
        return cls(success=False, error_type=exc.error_type, error=str(exc), **kwargs)


class ItemError(BaseModel):
    event_id: str
    error: str
    error_type: str | None = None


# ===========================================
# EMBEDDINGS & SIMILARITY
# ===========================================


class EmbeddingResult(OperationResult):
    event_id: str | None = None
    embedding_id: str | None = None
    dimension: int | None = None


class EmbeddingBatchResult(OperationResult):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[ItemError] = Field(default_factory=list)


class SimilarityMatch(BaseModel):
    event_id: str
    similarity_score: float


class SimilarEvent(SimilarityMatch):
    title: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None
    category: str | None = None


class SimilarEventsResult(OperationResult):
    similar_events: list[SimilarEvent] = Field(default_factory=list)
    count: int = 0


# ===========================================
# RELATIONSHIP CLASSIFICATION
# ===========================================


class LLMRelationshipResponse(BaseModel):
    """Strict shape of the JSON object the relationship prompt asks for."""

    model_config = ConfigDict(extra="ignore")

    hasRelationship: bool
    type: RelationshipType | None = None
    confidence: float | None = Field(default=None, allow_inf_nan=False)
    explanation: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("confidence", mode="after")
    @classmethod
    def clamp_confidence(cls, v: float | None) -> float | None:
        if v is None:
            return v
        return min(max(v, 0.0), 1.0)


class RelationshipClassification(BaseModel):
    has_relationship: bool
    type: RelationshipType | None = None
    confidence: float = 0.0
    explanation: str = ""
    source: Literal["llm", "heuristic"] = "heuristic"


class CrossReferenceCandidate(BaseModel):
    event_id_2: str
    relationship_type: RelationshipType
    confidence_score: float
    explanation: str
    similarity_score: float


class EventAnalysisResult(OperationResult):
    source_event_id: str | None = None
    cross_references: list[CrossReferenceCandidate] = Field(default_factory=list)


class AnalysisRun(OperationResult):
    total_events: int = 0
    events_processed: int = 0
    cross_references_found: int = 0
    errors: list[ItemError] = Field(default_factory=list)
    cancelled: bool = False


class CrossReferenceDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference_id: str
    event_id_1: str
    event_id_2: str
    relationship_type: RelationshipType
    confidence_score: float
    explanation: str | None = None
    discovered_at: datetime | None = None
    event1_title: str | None = None
    event1_date: str | None = None
    event2_title: str | None = None
    event2_date: str | None = None


class CrossReferencesResult(OperationResult):
    cross_references: list[CrossReferenceDetail] = Field(default_factory=list)


# ===========================================
# PATTERNS & TAGS
# ===========================================


class PatternGroup(BaseModel):
    type: Literal["recurring_categories", "temporal_clusters", "era_transitions"]
    description: str
    matches: list[dict[str, Any]]


class PatternDetectionResult(OperationResult):
    patterns: list[PatternGroup] = Field(default_factory=list)


class TagSuggestion(BaseModel):
    tag_name: str
    confidence: float
    frequency: int


class TagSuggestionResult(OperationResult):
    suggestions: list[TagSuggestion] = Field(default_factory=list)


# ===========================================
# API REQUESTS
# ===========================================


class FindSimilarRequest(BaseModel):
    threshold: float | None = Field(default=None, ge=-1.0, le=1.0)
    limit: int = Field(default=10, ge=1, le=500)


class AnalyzeRequest(BaseModel):
    threshold: float | None = Field(default=None, ge=-1.0, le=1.0)


class SuggestTagsRequest(BaseModel):
    limit: int = Field(default=5, ge=1, le=50)


class EmbeddingProviderRequest(BaseModel):
    provider: str
    model: str
    api_key: str | None = None
    base_url: str | None = None
