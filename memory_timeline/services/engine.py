"""
Timeline Engine - wires the cross-reference services together from settings.

One TimelineEngine is built at application startup and handed to the routes.
Switching embedding provider swaps the embedding service in place; the
analysis services read vectors straight from the store and are unaffected.
"""

from __future__ import annotations

from memory_timeline.config import Settings
from memory_timeline.services.embedding_providers import (
    EmbeddingConfig,
    create_embedding_provider,
)
from memory_timeline.services.embedding_service import EmbeddingService
from memory_timeline.services.llm_interface import LLMInterface
from memory_timeline.services.pattern_detector import PatternDetector
from memory_timeline.services.relationship_classifier import RelationshipClassifier
from memory_timeline.services.similarity_search import SimilaritySearchEngine
from memory_timeline.services.tag_suggestion import TagSuggestionEngine
from memory_timeline.services.timeline_analysis import TimelineAnalysisOrchestrator
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("engine")


class TimelineEngine:
    def __init__(
        self,
        config: Settings,
        embedding_service: EmbeddingService,
        llm_client: LLMInterface | None = None,
    ):
        self.config = config
        self.embedding_service = embedding_service
        self.similarity_engine = SimilaritySearchEngine()
        self.classifier = RelationshipClassifier(
            llm_client,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
        )
        self.orchestrator = TimelineAnalysisOrchestrator(
            self.similarity_engine,
            self.classifier,
            candidate_limit=config.analysis_candidate_limit,
            delay_seconds=config.analysis_delay_seconds,
        )
        self.pattern_detector = PatternDetector()
        self.tag_suggestion_engine = TagSuggestionEngine(
            self.similarity_engine,
            similarity_threshold=config.tag_suggestion_threshold,
            neighbor_limit=config.tag_suggestion_neighbor_limit,
        )

        if llm_client is None:
            logger.warning(
                "No LLM client configured; relationships will be classified heuristically."
            )

    @classmethod
    def from_settings(
        cls, config: Settings, llm_client: LLMInterface | None = None
    ) -> TimelineEngine:
        return cls(config, EmbeddingService.from_settings(config), llm_client)

    async def reconfigure_embeddings(self, embedding_config: EmbeddingConfig):
        """
        Replace the embedding provider.

        Vectors already stored keep their old dimension; clear them before
        embedding with a model of a different size.
        """
        provider = create_embedding_provider(embedding_config)
        previous = self.embedding_service
        self.embedding_service = EmbeddingService(
            provider,
            batch_delay_seconds=self.config.embedding_batch_delay_seconds,
        )
        await previous.close()
        logger.info(
            f"Embedding provider switched to {provider.name}/{provider.model} "
            f"(dim: {provider.dimension})"
        )

    async def close(self):
        await self.embedding_service.close()
