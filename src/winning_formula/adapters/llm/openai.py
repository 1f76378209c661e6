"""OpenAI LLM provider implementation."""

from typing import Any

import httpx

from winning_formula.adapters.llm.base import (
    ImageFetchError,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    VisionMessage,
)
from winning_formula.config import settings
from winning_formula.logging import get_logger

logger = get_logger(__name__)


def _is_image_fetch_failure(response: httpx.Response) -> bool:
    if response.status_code != 400:
        return False
    try:
        error = response.json().get("error", {})
    except ValueError:
        return False
    return error.get("code") == "invalid_image_url" or "downloading" in error.get("message", "")


class OpenAIProvider(LLMProvider):
    """OpenAI API provider for GPT models."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.openai.com/v1",
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = base_url

        if not self.api_key:
            logger.warning("OpenAI API key not configured")

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    @property
    def supports_vision(self) -> bool:
        return True

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion using OpenAI API."""
        return await self._send(
            [{"role": m.role, "content": m.content} for m in messages],
            temperature,
            max_tokens,
            json_mode,
        )

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion with image_url content parts."""
        payload_messages: list[dict[str, Any]] = []
        for msg in messages:
            parts: list[dict[str, Any]] = [
                {"type": "image_url", "image_url": {"url": url}} for url in msg.image_urls
            ]
            parts.append({"type": "text", "text": msg.text})
            payload_messages.append({"role": msg.role, "content": parts})
        return await self._send(payload_messages, temperature, max_tokens, json_mode)

    async def _send(
        self,
        payload_messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> LLMResponse:
        if not self.api_key:
            raise ValueError("OpenAI API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": payload_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        logger.debug(
            "openai_request",
            model=self.model,
            message_count=len(payload_messages),
            json_mode=json_mode,
        )

        async with httpx.AsyncClient(timeout=120.0) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
            )
            if _is_image_fetch_failure(response):
                raise ImageFetchError(response.text[:500])
            response.raise_for_status()
            data = response.json()

        choice = data["choices"][0]
        usage = data.get("usage", {})

        logger.info(
            "openai_response",
            model=self.model,
            tokens_used=usage.get("total_tokens", 0),
            finish_reason=choice.get("finish_reason"),
        )

        return LLMResponse(
            content=choice["message"]["content"] or "",
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            raw_response=data,
            finish_reason=choice.get("finish_reason"),
        )

    async def health_check(self) -> bool:
        """Check if OpenAI API is accessible."""
        if not self.api_key:
            return False

        try:
            headers = {"Authorization": f"Bearer {self.api_key}"}
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(f"{self.base_url}/models", headers=headers)
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("openai_health_check_failed", error=str(e))
            return False
