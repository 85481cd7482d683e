"""
Base classes for LLM providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal


@dataclass(frozen=True)
class LLMMessage:
    """A message in the conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


@dataclass
class LLMResponse:
    """Response from an LLM."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    stop_reason: str | None = None
    raw_response: Any = None

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class BaseLLM(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        pass

    async def generate_once(
        self,
        prompt_text: str,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Single-shot generation with no conversational framing.

        Used for overhead calls such as summarization and fact extraction.
        """
        return await self.generate(
            messages=[LLMMessage(role="user", content=prompt_text)],
            system_prompt=system_prompt,
        )

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass
