import time

from openai import AsyncOpenAI, AuthenticationError, OpenAIError

from memory_timeline.errors import ProviderAuthError, ProviderRequestError
from memory_timeline.services.embedding_providers.base import (
    EmbeddingConfig,
    EmbeddingProvider,
)
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("openai_embedding_provider")

OPENAI_DIMENSIONS = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}
DEFAULT_OPENAI_DIMENSION = 1536


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Embeddings through the OpenAI embeddings endpoint.
    """

    name = "openai"

    def __init__(self, config: EmbeddingConfig):
        super().__init__(config)
        self._client = None
        if config.api_key:
            client_args = {"api_key": config.api_key, "timeout": config.request_timeout}
            if config.base_url:
                client_args["base_url"] = config.base_url
            self._client = AsyncOpenAI(**client_args)
            logger.debug(
                f"OpenAI embedding client initialized. Model: {self.model}, "
                f"Base URL: {config.base_url or 'Default'}"
            )

    @classmethod
    def dimension_for(cls, model: str) -> int:
        return OPENAI_DIMENSIONS.get(model, DEFAULT_OPENAI_DIMENSION)

    async def _embed(self, text: str) -> list[float]:
        start_time = time.perf_counter()
        try:
            response = await self._client.embeddings.create(model=self.model, input=text)
        except AuthenticationError as e:
            raise ProviderAuthError(f"OpenAI rejected the configured API key: {e}") from e
        except OpenAIError as e:
            logger.error(
                f"OpenAI embedding error for model {self.model}: {type(e).__name__}: {e}"
            )
            raise ProviderRequestError(f"OpenAI API error: {e}") from e

        logger.debug(
            f"OpenAI embedding for {len(text)} chars completed in "
            f"{time.perf_counter() - start_time:.4f}s"
        )
        return list(response.data[0].embedding)

    async def close(self):
        if self._client:
            await self._client.close()
