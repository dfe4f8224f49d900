"""
Embedding provider registry.

A provider is chosen once, from an explicit EmbeddingConfig, when the
embedding service is built.
"""

from memory_timeline.errors import UnsupportedProviderError
from memory_timeline.services.embedding_providers.base import (
    EmbeddingConfig,
    EmbeddingProvider,
)
from memory_timeline.services.embedding_providers.cohere_provider import (
    CohereEmbeddingProvider,
)
from memory_timeline.services.embedding_providers.local_provider import (
    LocalEmbeddingProvider,
)
from memory_timeline.services.embedding_providers.openai_provider import (
    OpenAIEmbeddingProvider,
)
from memory_timeline.services.embedding_providers.voyage_provider import (
    VoyageEmbeddingProvider,
)

_provider_classes: dict[str, type[EmbeddingProvider]] = {
    "openai": OpenAIEmbeddingProvider,
    "voyage": VoyageEmbeddingProvider,
    "cohere": CohereEmbeddingProvider,
    "local": LocalEmbeddingProvider,
}


def get_provider_class(provider: str) -> type[EmbeddingProvider]:
    try:
        return _provider_classes[provider.lower()]
    except KeyError as e:
        raise UnsupportedProviderError(provider) from e


def create_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider:
    return get_provider_class(config.provider)(config)


__all__ = [
    "EmbeddingConfig",
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "VoyageEmbeddingProvider",
    "CohereEmbeddingProvider",
    "LocalEmbeddingProvider",
    "create_embedding_provider",
    "get_provider_class",
]
