"""
Pattern Detector - read-only aggregate views over the whole timeline.
"""

from memory_timeline.db_handlers import EventDBHandler
from memory_timeline.models.event import DEFAULT_CATEGORY
from memory_timeline.schemas import PatternDetectionResult, PatternGroup
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("pattern_detector")

MIN_RECURRING_CATEGORY_EVENTS = 3
MIN_CLUSTER_EVENTS = 3
MAX_TEMPORAL_CLUSTERS = 10
TRANSITION_CATEGORIES = ("milestone", "achievement", "challenge")


class PatternDetector:
    def __init__(self, event_db_handler: EventDBHandler | None = None):
        self.event_db_handler = event_db_handler or EventDBHandler()

    async def detect_recurring_categories(self) -> list[dict]:
        return await self.event_db_handler.count_by_category(
            min_count=MIN_RECURRING_CATEGORY_EVENTS, exclude_category=DEFAULT_CATEGORY
        )

    async def detect_temporal_clusters(self) -> list[dict]:
        return await self.event_db_handler.count_by_month(
            min_count=MIN_CLUSTER_EVENTS, limit=MAX_TEMPORAL_CLUSTERS
        )

    async def detect_era_transitions(self) -> list[dict]:
        return await self.event_db_handler.list_era_events_in_categories(
            TRANSITION_CATEGORIES
        )

    async def detect_patterns(self) -> PatternDetectionResult:
        groups = [
            (
                "recurring_categories",
                "Events that occur repeatedly in certain categories",
                await self.detect_recurring_categories(),
            ),
            (
                "temporal_clusters",
                "Time periods with high event density",
                await self.detect_temporal_clusters(),
            ),
            (
                "era_transitions",
                "Significant transitions between life phases",
                await self.detect_era_transitions(),
            ),
        ]

        patterns = [
            PatternGroup(type=pattern_type, description=description, matches=matches)
            for pattern_type, description, matches in groups
            if matches
        ]
        logger.info(f"Detected {len(patterns)} pattern groups")
        return PatternDetectionResult(patterns=patterns)
