from memory_timeline.errors import ProviderRequestError
from memory_timeline.services.embedding_providers.base import HTTPEmbeddingProvider

DEFAULT_COHERE_MODEL = "embed-english-v3.0"


class CohereEmbeddingProvider(HTTPEmbeddingProvider):
    name = "cohere"
    endpoint = "https://api.cohere.ai/v1/embed"

    @classmethod
    def dimension_for(cls, model: str) -> int:
        return 1024

    async def _embed(self, text: str) -> list[float]:
        data = await self._post_json(
            {
                "model": self.model or DEFAULT_COHERE_MODEL,
                "texts": [text],
                "input_type": "search_document",
            }
        )
        try:
            return list(data["embeddings"][0])
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderRequestError(f"Unexpected Cohere response shape: {e}") from e
