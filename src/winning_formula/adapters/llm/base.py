"""Base interface for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    raw_response: dict[str, Any] | None = None
    finish_reason: str | None = None


@dataclass
class LLMMessage:
    """A message in a conversation."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class VisionMessage:
    """A message that can include images for vision-capable models."""

    role: str  # "system", "user", "assistant"
    text: str
    image_urls: list[str] = field(default_factory=list)  # URLs or base64 data URIs


class ImageFetchError(Exception):
    """The provider could not download an image referenced by URL.

    This is the one failure the analyzer recovers from, by retrying text-only.
    """


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations:
    - AnthropicProvider: Uses Anthropic API (Claude)
    - OpenAIProvider: Uses OpenAI API (GPT-4o)
    - StubLLMProvider: Returns canned analyses for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion from messages.

        Args:
            messages: List of conversation messages
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens in response
            json_mode: If True, request JSON output format

        Returns:
            LLMResponse with generated content
        """
        ...

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion from messages that may include images.

        Raises:
            ImageFetchError: If the provider could not fetch an image URL
            NotImplementedError: If the provider doesn't support vision
        """
        raise NotImplementedError(f"{self.name} does not support vision")

    @property
    def supports_vision(self) -> bool:
        """Check if this provider supports vision (image) inputs."""
        return False

    async def health_check(self) -> bool:
        """Check if the provider is available."""
        return True
