import httpx
import pytest

from memory_timeline.config import Settings
from memory_timeline.services.llm_interface import completion_text
from memory_timeline.services.llm_providers.ollama_client import OllamaClient
from memory_timeline.services.llm_service import (
    close_all_llm_clients,
    get_llm_client,
    initialize_all_llm_clients,
)


@pytest.mark.asyncio
async def test_unconfigured_providers_yield_none():
    config = Settings(OPENAI_API_KEY="", OLLAMA_BASE_URL="")

    assert get_llm_client("openai", config) is None
    assert get_llm_client("ollama", config) is None
    assert get_llm_client("gemini", config) is None
    assert initialize_all_llm_clients(config) == []


@pytest.mark.asyncio
async def test_configured_client_is_cached():
    config = Settings(OPENAI_API_KEY="", OLLAMA_BASE_URL="http://localhost:11434")
    try:
        client = get_llm_client("ollama", config)
        assert isinstance(client, OllamaClient)
        assert get_llm_client("OLLAMA", config) is client
    finally:
        await close_all_llm_clients()


@pytest.mark.asyncio
async def test_ollama_reply_is_reshaped_to_chat_completion():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/chat"
        return httpx.Response(
            200,
            json={
                "model": "llama3:instruct",
                "message": {"role": "assistant", "content": '{"hasRelationship": false}'},
                "done_reason": "stop",
            },
        )

    client = OllamaClient(base_url="http://ollama.test")
    client._client = httpx.AsyncClient(
        base_url="http://ollama.test", transport=httpx.MockTransport(handler)
    )

    completion = await client.generate_chat_completion(
        [{"role": "user", "content": "hi"}]
    )

    assert completion_text(completion) == '{"hasRelationship": false}'
    await client.close()


def test_completion_text_handles_empty_shapes():
    assert completion_text(None) == ""
    assert completion_text({}) == ""
    assert completion_text({"choices": []}) == ""
    assert completion_text({"choices": [{"message": {"content": None}}]}) == ""
