"""
Abstract interface for embedding providers.

Every provider turns a piece of text into a vector of a fixed, statically
known length. The length is reported without touching the network so callers
can validate stored vectors before any request is made.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

import httpx
from pydantic import BaseModel, ConfigDict

from memory_timeline.config import Settings
from memory_timeline.errors import ProviderAuthError, ProviderRequestError
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("embedding_providers")

DEFAULT_EMBEDDING_MODELS = {
    "openai": "text-embedding-3-small",
    "voyage": "voyage-2",
    "cohere": "embed-english-v3.0",
    "local": "all-MiniLM-L6-v2",
}


class EmbeddingConfig(BaseModel):
    """Explicit provider selection handed to the provider factory."""

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    api_key: str | None = None
    base_url: str | None = None
    request_timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> EmbeddingConfig:
        api_keys = {
            "openai": settings.openai_api_key,
            "voyage": settings.voyage_api_key,
            "cohere": settings.cohere_api_key,
        }
        provider = settings.embedding_provider.lower()
        return cls(
            provider=provider,
            model=settings.embedding_model or DEFAULT_EMBEDDING_MODELS.get(provider, ""),
            api_key=api_keys.get(provider),
            base_url=settings.openai_base_url if provider == "openai" else None,
            request_timeout=settings.embedding_request_timeout,
        )


class EmbeddingProvider(ABC):
    """
    Abstract Base Class for embedding backends.
    """

    name: ClassVar[str]
    requires_api_key: ClassVar[bool] = True

    def __init__(self, config: EmbeddingConfig):
        self.config = config
        self.model = config.model
        self.dimension = self.dimension_for(config.model)

    @classmethod
    @abstractmethod
    def dimension_for(cls, model: str) -> int:
        """Output length of `model`, known without a network call."""

    @abstractmethod
    async def _embed(self, text: str) -> list[float]:
        """Provider-specific request; credentials are already checked."""

    async def embed(self, text: str) -> list[float]:
        if self.requires_api_key and not self.config.api_key:
            raise ProviderAuthError(f"{self.name} API key not configured")

        vector = await self._embed(text)
        if len(vector) != self.dimension:
            raise ProviderRequestError(
                f"{self.name}/{self.model} returned a vector of length {len(vector)}, "
                f"expected {self.dimension}"
            )
        return vector

    async def close(self):
        """Release any underlying connections."""
        return


class HTTPEmbeddingProvider(EmbeddingProvider):
    """Shared plumbing for providers reached through a plain JSON HTTP API."""

    endpoint: ClassVar[str]

    def __init__(self, config: EmbeddingConfig):
        super().__init__(config)
        self._client = httpx.AsyncClient(timeout=config.request_timeout)

    async def _post_json(self, payload: dict) -> dict:
        try:
            response = await self._client.post(
                self.config.base_url or self.endpoint,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.config.api_key}",
                },
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"{self.name} embedding API error ({status}) for model {self.model}: {e.response.text}"
            )
            if status in (401, 403):
                raise ProviderAuthError(
                    f"{self.name} rejected the configured API key ({status})"
                ) from e
            raise ProviderRequestError(
                f"{self.name} API error ({status}): {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                f"{self.name} embedding request failed for model {self.model}: {e}"
            )
            raise ProviderRequestError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            raise ProviderRequestError(f"{self.name} returned invalid JSON: {e}") from e

    async def close(self):
        await self._client.aclose()
