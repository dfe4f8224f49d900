from memory_timeline.errors import ProviderRequestError
from memory_timeline.services.embedding_providers.base import HTTPEmbeddingProvider

VOYAGE_DIMENSIONS = {
    "voyage-2": 1024,
    "voyage-large-2": 1536,
}
DEFAULT_VOYAGE_DIMENSION = 1024


class VoyageEmbeddingProvider(HTTPEmbeddingProvider):
    name = "voyage"
    endpoint = "https://api.voyageai.com/v1/embeddings"

    @classmethod
    def dimension_for(cls, model: str) -> int:
        return VOYAGE_DIMENSIONS.get(model, DEFAULT_VOYAGE_DIMENSION)

    async def _embed(self, text: str) -> list[float]:
        data = await self._post_json({"model": self.model, "input": [text]})
        try:
            return list(data["data"][0]["embedding"])
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderRequestError(f"Unexpected Voyage AI response shape: {e}") from e
