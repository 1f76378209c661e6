"""LLM provider adapters."""

from winning_formula.adapters.llm.anthropic import AnthropicProvider
from winning_formula.adapters.llm.base import (
    ImageFetchError,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    VisionMessage,
)
from winning_formula.adapters.llm.openai import OpenAIProvider
from winning_formula.adapters.llm.stub import StubLLMProvider

__all__ = [
    "AnthropicProvider",
    "ImageFetchError",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "StubLLMProvider",
    "VisionMessage",
]
