"""Anthropic LLM provider implementation."""

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

API_VERSION = "2023-06-01"


def _image_block(url: str) -> dict[str, Any]:
    if url.startswith("data:"):
        header, data = url.split(",", 1)
        media_type = header[len("data:") :].split(";", 1)[0] or "image/jpeg"
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }
    return {"type": "image", "source": {"type": "url", "url": url}}


def _is_image_fetch_failure(response: httpx.Response) -> bool:
    if response.status_code != 400:
        return False
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        message = response.text
    return "Unable to download" in message


class AnthropicProvider(LLMProvider):
    """Anthropic API provider for Claude models."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.anthropic.com/v1",
    ) -> None:
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.anthropic_model
        self.base_url = base_url

        if not self.api_key:
            logger.warning("Anthropic API key not configured")

    @property
    def name(self) -> str:
        return f"anthropic:{self.model}"

    @property
    def supports_vision(self) -> bool:
        return True

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": API_VERSION,
            "Content-Type": "application/json",
        }

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion using Anthropic API."""
        system_message = ""
        conversation: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == "system":
                system_message = msg.content
            else:
                conversation.append({"role": msg.role, "content": msg.content})
        return await self._send(conversation, system_message, temperature, max_tokens, json_mode)

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion with image blocks placed before the text prompt."""
        system_message = ""
        conversation: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == "system":
                system_message = msg.text
                continue
            content = [_image_block(url) for url in msg.image_urls]
            content.append({"type": "text", "text": msg.text})
            conversation.append({"role": msg.role, "content": content})
        return await self._send(conversation, system_message, temperature, max_tokens, json_mode)

    async def _send(
        self,
        conversation: list[dict[str, Any]],
        system_message: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> LLMResponse:
        if not self.api_key:
            raise ValueError("Anthropic API key not configured")

        if json_mode:
            json_instruction = "\n\nIMPORTANT: You must respond with valid JSON only. No other text."
            system_message = system_message + json_instruction if system_message else json_instruction

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": conversation,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_message:
            payload["system"] = system_message

        logger.debug(
            "anthropic_request",
            model=self.model,
            message_count=len(conversation),
            json_mode=json_mode,
        )

        async with httpx.AsyncClient(timeout=120.0) as client:
            response = await client.post(
                f"{self.base_url}/messages",
                headers=self._headers(),
                json=payload,
            )
            if _is_image_fetch_failure(response):
                raise ImageFetchError(response.text[:500])
            response.raise_for_status()
            data = response.json()

        content = ""
        for block in data.get("content") or []:
            if block.get("type") == "text":
                content += block.get("text", "")

        usage = data.get("usage", {})

        logger.info(
            "anthropic_response",
            model=self.model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            stop_reason=data.get("stop_reason"),
        )

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("input_tokens", 0),
                "completion_tokens": usage.get("output_tokens", 0),
                "total_tokens": usage.get("input_tokens", 0) + usage.get("output_tokens", 0),
            },
            raw_response=data,
            finish_reason=data.get("stop_reason"),
        )

    async def health_check(self) -> bool:
        """Check if Anthropic API is accessible."""
        if not self.api_key:
            return False

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers=self._headers(),
                    json={
                        "model": self.model,
                        "messages": [{"role": "user", "content": "hi"}],
                        "max_tokens": 1,
                    },
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("anthropic_health_check_failed", error=str(e))
            return False
