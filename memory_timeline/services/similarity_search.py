"""
Similarity Search Engine - brute-force cosine similarity over stored embeddings.

Every lookup scans the full embedding table. At journal scale (low thousands
of events) one similarity computation over the whole matrix is fast enough
that no index is kept.
"""

from __future__ import annotations

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine_similarity

from memory_timeline.db_handlers import EventEmbeddingDBHandler
from memory_timeline.errors import DimensionMismatchError, NotEmbeddedError
from memory_timeline.schemas import SimilarityMatch
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("similarity_search")

# Identical vectors can score a few ulps below 1.0
SCORE_TOLERANCE = 1e-9


def _usable_rows(matrix: np.ndarray) -> np.ndarray:
    """Mask of rows that are finite and non-zero, where the cosine is defined."""
    finite = np.isfinite(matrix).all(axis=1)
    nonzero = np.zeros(len(matrix), dtype=bool)
    nonzero[finite] = np.linalg.norm(matrix[finite], axis=1) > 0
    return finite & nonzero


def cosine_similarity(vec_a, vec_b) -> float | None:
    """
    Cosine of the angle between two equal-length vectors.

    Returns None when either vector is zero or not finite, where the cosine
    is undefined.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Vectors must have the same dimension ({a.size} != {b.size})")
    pair = np.vstack([a, b])
    if not _usable_rows(pair).all():
        return None
    score = pairwise_cosine_similarity(pair[:1], pair[1:])[0, 0]
    return float(np.clip(score, -1.0, 1.0))


class SimilaritySearchEngine:
    def __init__(self, embedding_db_handler: EventEmbeddingDBHandler | None = None):
        self.embedding_db_handler = embedding_db_handler or EventEmbeddingDBHandler()

    async def find_similar(
        self, source_event_id: str, threshold: float, limit: int
    ) -> list[SimilarityMatch]:
        """
        Rank every other embedded event by cosine similarity to the source.

        Raises NotEmbeddedError when the source has no vector and
        DimensionMismatchError when any stored vector has a different length
        than the source's. Candidates whose vector is zero or contains
        NaN/inf are skipped. Ties are broken by event id so results are
        deterministic.
        """
        source = await self.embedding_db_handler.get_embedding(source_event_id)
        if source is None:
            raise NotEmbeddedError(source_event_id)

        source_vector = np.asarray(source.vector, dtype=np.float64).reshape(1, -1)
        candidates = await self.embedding_db_handler.list_vectors_excluding(
            source_event_id
        )
        if not candidates:
            logger.debug(f"No other embedded events to compare with {source_event_id}")
            return []

        for event_id, vector in candidates:
            if len(vector) != source_vector.size:
                raise DimensionMismatchError(
                    source_event_id, source_vector.size, event_id, len(vector)
                )

        if limit <= 0:
            return []

        if not _usable_rows(source_vector)[0]:
            logger.warning(
                f"Source event {source_event_id} has a zero or non-finite vector; "
                f"no similarity is defined"
            )
            return []

        matrix = np.asarray([vector for _, vector in candidates], dtype=np.float64)
        usable = _usable_rows(matrix)
        event_ids = [event_id for (event_id, _), ok in zip(candidates, usable) if ok]
        if not event_ids:
            return []

        scores = pairwise_cosine_similarity(source_vector, matrix[usable])[0]
        scores = np.clip(scores, -1.0, 1.0)

        matches = [
            SimilarityMatch(event_id=event_id, similarity_score=float(score))
            for event_id, score in zip(event_ids, scores)
            if score >= threshold - SCORE_TOLERANCE
        ]
        matches.sort(key=lambda m: (-m.similarity_score, m.event_id))

        logger.debug(
            f"find_similar({source_event_id}, threshold={threshold}) scanned "
            f"{len(candidates)} embeddings, {len(matches)} above threshold"
        )
        return matches[:limit]
