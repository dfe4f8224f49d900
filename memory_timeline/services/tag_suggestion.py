"""
Tag Suggestion Engine - proposes tags for an event from its semantic neighbours.

A tag scores (share of neighbours carrying it) x (its average confidence on
those neighbours). Tags the event already has are never suggested.
"""

from collections import defaultdict

from memory_timeline.db_handlers import EventDBHandler
from memory_timeline.errors import CrossReferenceEngineError
from memory_timeline.schemas import TagSuggestion, TagSuggestionResult
from memory_timeline.services.similarity_search import SimilaritySearchEngine
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("tag_suggestion")


class TagSuggestionEngine:
    def __init__(
        self,
        similarity_engine: SimilaritySearchEngine,
        event_db_handler: EventDBHandler | None = None,
        similarity_threshold: float = 0.7,
        neighbor_limit: int = 10,
    ):
        self.similarity_engine = similarity_engine
        self.event_db_handler = event_db_handler or EventDBHandler()
        self.similarity_threshold = similarity_threshold
        self.neighbor_limit = neighbor_limit

    async def suggest_tags(self, event_id: str, limit: int = 5) -> TagSuggestionResult:
        try:
            neighbors = await self.similarity_engine.find_similar(
                event_id, self.similarity_threshold, self.neighbor_limit
            )
        except CrossReferenceEngineError as e:
            logger.warning(f"Cannot suggest tags for event {event_id}: {e}")
            return TagSuggestionResult.failure(e)

        if not neighbors or limit <= 0:
            return TagSuggestionResult(suggestions=[])

        neighbor_ids = [n.event_id for n in neighbors]
        tags_by_event = await self.event_db_handler.list_tags_for_events(
            neighbor_ids + [event_id]
        )
        existing = {tag_name for tag_name, _ in tags_by_event.get(event_id, [])}

        confidences: dict[str, list[float]] = defaultdict(list)
        for neighbor_id in neighbor_ids:
            for tag_name, confidence in tags_by_event.get(neighbor_id, []):
                if tag_name not in existing:
                    confidences[tag_name].append(confidence)

        suggestions = []
        for tag_name, observed in confidences.items():
            frequency = len(observed)
            average_confidence = sum(observed) / frequency
            score = (frequency / len(neighbor_ids)) * average_confidence
            suggestions.append(
                TagSuggestion(
                    tag_name=tag_name,
                    confidence=min(max(score, 0.0), 1.0),
                    frequency=frequency,
                )
            )

        suggestions.sort(key=lambda s: (-s.confidence, -s.frequency, s.tag_name))
        return TagSuggestionResult(suggestions=suggestions[:limit])
