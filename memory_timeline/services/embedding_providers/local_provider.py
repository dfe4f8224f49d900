import hashlib

import numpy as np

from memory_timeline.services.embedding_providers.base import EmbeddingProvider
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("local_embedding_provider")

LOCAL_DIMENSION = 384


class LocalEmbeddingProvider(EmbeddingProvider):
    """
    Offline placeholder provider.

    Produces a unit-length vector seeded from a hash of the text, so identical
    text always maps to the identical vector. The vectors carry no semantic
    meaning; use a remote provider for real cross-referencing.
    """

    name = "local"
    requires_api_key = False

    def __init__(self, config):
        super().__init__(config)
        logger.warning(
            "Using placeholder local embeddings. Similarity scores are not semantic."
        )

    @classmethod
    def dimension_for(cls, model: str) -> int:
        return LOCAL_DIMENSION

    async def _embed(self, text: str) -> list[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        rng = np.random.default_rng(seed)
        vector = rng.uniform(-1.0, 1.0, self.dimension)
        vector /= np.linalg.norm(vector)
        return vector.tolist()
