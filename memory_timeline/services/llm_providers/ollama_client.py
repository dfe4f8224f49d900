import time
from typing import Any

import httpx

from memory_timeline.services.llm_interface import LLMInterface
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("ollama_client")


class OllamaClient(LLMInterface):
    """
    LLM Client implementation for a local Ollama API.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        default_model: str = "llama3:instruct",
        request_timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=request_timeout)
        logger.info(
            f"Ollama client initialized. Base URL: {self.base_url}, "
            f"Default Model: {default_model}, Timeout: {request_timeout}s"
        )

    async def generate_chat_completion(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> dict[str, Any]:
        model_name = kwargs.pop("model", None) or self.default_model
        payload = {
            "model": model_name,
            "messages": messages,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        if kwargs.get("format"):
            payload["format"] = kwargs["format"]

        start_time = time.perf_counter()
        response = await self._client.post("/api/chat", json=payload)
        if response.status_code != 200:
            logger.error(
                f"Ollama API error ({response.status_code}) for model {model_name}: {response.text}"
            )
            response.raise_for_status()

        data = response.json()
        logger.info(
            f"Ollama chat completion for model {model_name} completed in "
            f"{time.perf_counter() - start_time:.4f}s"
        )

        # Reshape into the OpenAI chat-completion layout callers expect
        message = data.get("message") or {}
        return {
            "model": data.get("model", model_name),
            "choices": [
                {
                    "index": 0,
                    "message": {
                        "role": message.get("role", "assistant"),
                        "content": message.get("content", ""),
                    },
                    "finish_reason": data.get("done_reason", "stop"),
                }
            ],
        }

    async def close(self):
        logger.info("Closing Ollama client.")
        await self._client.aclose()
