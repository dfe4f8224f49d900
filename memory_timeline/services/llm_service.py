"""
LLM Service Manager - initialization and caching of chat-completion clients.

Clients are created from settings on first use and cached by provider name.
A provider without the configuration it needs yields None rather than an
exception, which lets relationship classification fall back to heuristics.
"""

from typing import Any

from memory_timeline.config import Settings, settings
from memory_timeline.services.llm_interface import LLMInterface
from memory_timeline.services.llm_providers.ollama_client import OllamaClient
from memory_timeline.services.llm_providers.openai_client import OpenAIClient
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("llm_service_manager")

_initialized_clients: dict[str, LLMInterface] = {}

_client_constructors: dict[str, type[LLMInterface]] = {
    "openai": OpenAIClient,
    "ollama": OllamaClient,
}


def _get_client_config(provider_name: str, config: Settings) -> dict[str, Any] | None:
    """Constructor arguments for a provider, or None when it is not configured."""
    if provider_name == "openai":
        if not config.openai_api_key:
            return None
        return {
            "api_key": config.openai_api_key,
            "base_url": config.openai_base_url,
            "default_model": config.default_openai_model,
        }
    if provider_name == "ollama":
        if not config.ollama_base_url:
            return None
        return {
            "base_url": config.ollama_base_url,
            "default_model": config.default_ollama_model,
        }
    return None


def get_llm_client(
    provider_name: str | None = None, config: Settings | None = None
) -> LLMInterface | None:
    """
    Get an initialized LLM client for the specified provider.

    Returns None if the provider is unknown or not configured.
    """
    config = config or settings
    provider_name = (provider_name or config.default_llm_provider).lower()

    client = _initialized_clients.get(provider_name)
    if client:
        return client

    if provider_name not in _client_constructors:
        logger.error(
            f"Unknown provider name: {provider_name}. "
            f"Available providers: {list(_client_constructors.keys())}"
        )
        return None

    client_config = _get_client_config(provider_name, config)
    if client_config is None:
        logger.info(f"{provider_name.capitalize()} client is not configured.")
        return None

    try:
        instance = _client_constructors[provider_name](**client_config)
    except ValueError as ve:
        logger.error(f"Configuration error initializing {provider_name} client: {ve}")
        return None

    _initialized_clients[provider_name] = instance
    logger.info(f"{provider_name.capitalize()} client initialized and cached.")
    return instance


def initialize_all_llm_clients(config: Settings | None = None) -> list[str]:
    """Initialize every configured provider; returns the names that are ready."""
    ready = [
        name
        for name in _client_constructors
        if get_llm_client(name, config) is not None
    ]
    logger.info(f"LLM client initialization complete. Ready: {ready}")
    return ready


async def close_all_llm_clients():
    """Close all initialized LLM clients."""
    for provider_name, client_instance in list(_initialized_clients.items()):
        try:
            await client_instance.close()
        except Exception as e:
            logger.error(f"Error closing {provider_name} client: {e}", exc_info=True)
    _initialized_clients.clear()
    logger.info("All LLM clients closed and cleared from cache.")
