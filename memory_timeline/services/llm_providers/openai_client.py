import time
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from memory_timeline.services.llm_interface import LLMInterface
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("openai_client")


class OpenAIClient(LLMInterface):
    """
    LLM Client implementation for OpenAI-compatible chat completion APIs.
    """

    def __init__(
        self,
        api_key: str,
        default_model: str,
        base_url: str | None = None,
    ):
        if not api_key:
            logger.error("OpenAI API key is required but not provided")
            raise ValueError("OpenAI API key is required.")

        self.base_url = base_url
        self.default_model = default_model

        client_args = {"api_key": api_key}
        if base_url:
            client_args["base_url"] = base_url

        self._client = AsyncOpenAI(**client_args)
        logger.info(
            f"OpenAI client initialized. Base URL: {base_url or 'Default'}, "
            f"Default Model: {default_model}"
        )

    async def generate_chat_completion(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> dict[str, Any]:
        effective_model = kwargs.pop("model", None) or self.default_model
        start_time = time.perf_counter()

        try:
            response = await self._client.chat.completions.create(
                model=effective_model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except OpenAIError as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"OpenAI API error during chat completion for model {effective_model} "
                f"after {duration:.4f}s: {type(e).__name__}: {e}"
            )
            raise

        response_dict = response.model_dump()
        duration = time.perf_counter() - start_time
        logger.info(
            f"OpenAI chat completion for model {effective_model} completed in {duration:.4f}s. "
            f"Input: {len(messages)} messages"
        )
        if duration > 30:
            logger.warning(f"Slow chat completion response: {duration:.4f}s")

        return response_dict

    async def close(self):
        logger.info("Closing OpenAI client.")
        await self._client.close()
