"""Adapters for external services."""

from winning_formula.adapters.llm.base import LLMProvider
from winning_formula.adapters.tiktok.base import VideoSource

__all__ = [
    "LLMProvider",
    "VideoSource",
]
