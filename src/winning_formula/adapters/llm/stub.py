"""Stub LLM provider for testing."""

import json
from typing import Any

from winning_formula.adapters.llm.base import (
    ImageFetchError,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    VisionMessage,
)
from winning_formula.logging import get_logger

logger = get_logger(__name__)


def default_analysis(confidence: float = 0.9) -> dict[str, Any]:
    """A complete structured analysis in the model's camelCase shape."""
    return {
        "hook": {
            "text": "You won't believe this fits",
            "duration": 2.5,
            "type": "curiosity_gap",
            "visualElement": "Close-up of the jacket zipper",
            "effectivenessScore": 7,
        },
        "script": {
            "fullTranscript": "Okay so this jacket... link in bio.",
            "keyMessages": ["Water resistant", "Packs small", "Under $80"],
            "voiceoverStyle": "casual",
        },
        "visual": {
            "environment": "urban_street",
            "lighting": "natural_daylight",
            "cameraAngles": ["close_up", "full_body"],
            "modelDescription": "Woman in her 20s, relaxed styling",
            "productDisplay": "worn",
            "colorPalette": ["olive", "black"],
            "sceneBreakdown": [
                {"timestamp": "0-3s", "description": "Zipper close-up", "transition": "cut"},
            ],
        },
        "classification": {"primary": "product_demo", "secondary": "lifestyle"},
        "cta": {
            "extracted": "Link in bio",
            "primary": "Shop the jacket",
            "type": "link_in_bio",
            "placement": "closing",
            "urgency": "medium",
        },
        "campaign": {"category": "organic_content"},
        "performance_factors": {
            "strengths": ["Fast hook", "Clear product benefit"],
            "winning_patterns": ["Feature-first approach"],
        },
        "metadata": {"confidence": confidence},
    }


class StubLLMProvider(LLMProvider):
    """Stub provider that returns a canned structured analysis.

    Args:
        payload: Analysis dict to return (defaults to ``default_analysis()``)
        content: Raw response text, overriding ``payload``
        fail_image_fetch: Raise ImageFetchError whenever an image is attached
        error: Exception raised on every call
    """

    def __init__(
        self,
        payload: dict[str, Any] | None = None,
        content: str | None = None,
        fail_image_fetch: bool = False,
        error: Exception | None = None,
    ) -> None:
        self.payload = payload if payload is not None else default_analysis()
        self.content = content
        self.fail_image_fetch = fail_image_fetch
        self.error = error
        self.calls: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "stub"

    @property
    def supports_vision(self) -> bool:
        """Stub provider supports vision for testing."""
        return True

    def _respond(self, model: str) -> LLMResponse:
        if self.error is not None:
            raise self.error
        content = self.content if self.content is not None else json.dumps(self.payload)
        return LLMResponse(
            content=content,
            model=model,
            usage={"prompt_tokens": 0, "completion_tokens": len(content.split())},
            finish_reason="stop",
        )

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return the canned text-only response."""
        logger.info("stub_llm_complete", message_count=len(messages), json_mode=json_mode)
        self.calls.append({"mode": "text", "image_count": 0})
        return self._respond("stub-model")

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return the canned vision response."""
        image_count = sum(len(m.image_urls) for m in messages)
        logger.info(
            "stub_llm_vision_complete",
            message_count=len(messages),
            image_count=image_count,
            json_mode=json_mode,
        )
        self.calls.append({"mode": "vision", "image_count": image_count})
        if self.fail_image_fetch and image_count:
            raise ImageFetchError("Unable to download the file")
        return self._respond("stub-vision-model")

    async def health_check(self) -> bool:
        """Stub provider is always healthy."""
        return True
