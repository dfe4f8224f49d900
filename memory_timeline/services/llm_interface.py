"""
Abstract interface for chat-completion LLM services.

Responses are normalized to the OpenAI chat-completion shape
(`{"choices": [{"message": {"content": ...}}]}`) whatever the provider.
"""

from abc import ABC, abstractmethod
from typing import Any


class LLMInterface(ABC):
    """
    Abstract Base Class for Large Language Model services.
    """

    @abstractmethod
    async def generate_chat_completion(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Generates a chat completion based on a list of messages."""

    async def close(self):
        """
        Optional method to close any underlying connections or clients.
        """
        return


def completion_text(completion: dict[str, Any] | None) -> str:
    """Message content of the first choice, or an empty string."""
    if not completion:
        return ""
    choices = completion.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or ""
