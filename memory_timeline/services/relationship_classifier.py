"""
Relationship Classifier - decides whether and how two timeline events are related.

Two tiers:
1. An LLM reads both events and answers with a JSON object that is decoded
   against a strict schema.
2. A deterministic heuristic (shared category, then date proximity) used
   whenever the LLM is not configured, cannot be reached, or answers with
   something that does not decode.

Classification never raises because of the LLM; a batch over many pairs
always completes.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from pydantic import ValidationError

from memory_timeline.errors import ClassificationParseError
from memory_timeline.models.event import DEFAULT_CATEGORY
from memory_timeline.prompts import (
    EVENT_BLOCK_TEMPLATE,
    RELATIONSHIP_ANALYSIS_PROMPT,
    RELATIONSHIP_SYSTEM_PROMPT,
)
from memory_timeline.schemas import LLMRelationshipResponse, RelationshipClassification
from memory_timeline.services.llm_interface import LLMInterface, completion_text
from memory_timeline.utils.json_parser import extract_json_from_llm_response
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("relationship_classifier")

SAME_CATEGORY_CONFIDENCE = 0.6
TEMPORAL_PROXIMITY_CONFIDENCE = 0.5
TEMPORAL_PROXIMITY_DAYS = 30


class EventLike(Protocol):
    event_id: str
    title: str
    start_date: str
    end_date: str | None
    description: str | None
    category: str | None


def _parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def heuristic_relationship(event_a: EventLike, event_b: EventLike) -> RelationshipClassification:
    """Deterministic fallback: same non-default category, else start dates within 30 days."""
    category_a = (event_a.category or "").lower()
    category_b = (event_b.category or "").lower()
    if category_a and category_a == category_b and category_a != DEFAULT_CATEGORY:
        return RelationshipClassification(
            has_relationship=True,
            type="thematic",
            confidence=SAME_CATEGORY_CONFIDENCE,
            explanation=f"Both events are categorized as {event_a.category}",
        )

    date_a = _parse_iso_date(event_a.start_date)
    date_b = _parse_iso_date(event_b.start_date)
    if date_a and date_b:
        days_apart = abs((date_b - date_a).days)
        if days_apart <= TEMPORAL_PROXIMITY_DAYS:
            return RelationshipClassification(
                has_relationship=True,
                type="temporal",
                confidence=TEMPORAL_PROXIMITY_CONFIDENCE,
                explanation=f"Events occurred within {days_apart} days of each other",
            )

    return RelationshipClassification(has_relationship=False)


def _event_block(index: int, event: EventLike) -> str:
    date_range = event.start_date
    if event.end_date:
        date_range = f"{event.start_date} to {event.end_date}"
    return EVENT_BLOCK_TEMPLATE.format(
        index=index,
        title=event.title,
        date_range=date_range,
        description=event.description or "N/A",
        category=event.category or "N/A",
    )


def parse_relationship_response(raw_content: str) -> RelationshipClassification:
    """
    Decode an LLM answer into a classification.

    Raises ClassificationParseError when no JSON object is present, when it
    does not match the expected schema, or when a relationship is claimed
    without a valid type and a finite confidence.
    """
    parsed = extract_json_from_llm_response(raw_content)
    if parsed is None:
        raise ClassificationParseError(
            f"No JSON object in LLM response: {raw_content[:200]!r}"
        )

    try:
        response = LLMRelationshipResponse.model_validate(parsed)
    except ValidationError as e:
        raise ClassificationParseError(f"LLM response failed validation: {e}") from e

    if response.hasRelationship and response.type is None:
        raise ClassificationParseError("LLM reported a relationship without a type")
    if response.hasRelationship and response.confidence is None:
        raise ClassificationParseError("LLM reported a relationship without a confidence")

    if not response.hasRelationship:
        return RelationshipClassification(
            has_relationship=False, explanation=response.explanation, source="llm"
        )

    return RelationshipClassification(
        has_relationship=True,
        type=response.type,
        confidence=response.confidence,
        explanation=response.explanation,
        source="llm",
    )


class RelationshipClassifier:
    def __init__(
        self,
        llm_client: LLMInterface | None = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ):
        self.llm_client = llm_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def classify(
        self, event_a: EventLike, event_b: EventLike
    ) -> RelationshipClassification:
        if self.llm_client is None:
            return heuristic_relationship(event_a, event_b)

        try:
            return await self._classify_with_llm(event_a, event_b)
        except ClassificationParseError as e:
            logger.warning(
                f"Unparseable relationship answer for {event_a.event_id}/{event_b.event_id}, "
                f"using heuristic: {e}"
            )
        except Exception as e:
            logger.error(
                f"LLM relationship analysis failed for {event_a.event_id}/{event_b.event_id}, "
                f"using heuristic: {type(e).__name__}: {e}"
            )
        return heuristic_relationship(event_a, event_b)

    async def _classify_with_llm(
        self, event_a: EventLike, event_b: EventLike
    ) -> RelationshipClassification:
        prompt = RELATIONSHIP_ANALYSIS_PROMPT.format(
            event_1=_event_block(1, event_a), event_2=_event_block(2, event_b)
        )
        completion = await self.llm_client.generate_chat_completion(
            messages=[
                {"role": "system", "content": RELATIONSHIP_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        raw_content = completion_text(completion)
        if not raw_content:
            raise ClassificationParseError("LLM returned empty content")
        return parse_relationship_response(raw_content)
