"""Tests for adapter implementations."""

import json

import httpx
import pytest

from winning_formula.adapters.llm.anthropic import _image_block, _is_image_fetch_failure
from winning_formula.adapters.llm.base import ImageFetchError, LLMMessage, VisionMessage
from winning_formula.adapters.tiktok.base import TikTokAPIError, TikTokVideo
from winning_formula.adapters.tiktok.client import TikTokVideoSource


def _video(video_id: str, **fields) -> dict:
    return {"id": video_id, "title": f"Video {video_id}", "view_count": 100, **fields}


def _page(videos: list[dict], has_more: bool = False, cursor: int | None = None) -> dict:
    return {
        "data": {"videos": videos, "has_more": has_more, "cursor": cursor},
        "error": {"code": "ok", "message": ""},
    }


def _source(handler) -> TikTokVideoSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TikTokVideoSource(base_url="https://open.tiktokapis.com/v2", page_size=2, client=client)


@pytest.mark.asyncio
async def test_tiktok_source_follows_cursor() -> None:
    requests: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        assert request.headers["Authorization"] == "Bearer tok"
        assert "view_count" in request.url.params["fields"]
        if body["cursor"] == 0:
            return httpx.Response(200, json=_page([_video("1"), _video("2")], True, 1700))
        return httpx.Response(200, json=_page([_video("3", like_count="7")]))

    videos = await _source(handler).fetch_all("tok")

    assert [v.id for v in videos] == ["1", "2", "3"]
    assert videos[2].like_count == 7
    assert requests == [{"cursor": 0, "max_count": 2}, {"cursor": 1700, "max_count": 2}]


@pytest.mark.asyncio
async def test_tiktok_source_respects_page_limit() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=_page([_video(str(len(calls)))], True, len(calls)))

    videos = await _source(handler).fetch_all("tok", max_pages=3)

    assert len(videos) == 3
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_tiktok_source_http_error() -> None:
    source = _source(lambda request: httpx.Response(401, text="unauthorized"))

    with pytest.raises(TikTokAPIError):
        await source.fetch_page("tok")


@pytest.mark.asyncio
async def test_tiktok_source_logic_error() -> None:
    body = {"data": {}, "error": {"code": "access_token_invalid", "message": "expired"}}
    source = _source(lambda request: httpx.Response(200, json=body))

    with pytest.raises(TikTokAPIError) as exc_info:
        await source.fetch_page("tok")

    assert exc_info.value.code == "access_token_invalid"


def test_tiktok_video_from_api() -> None:
    video = TikTokVideo.from_api({"id": 123, "title": None, "create_time": 1767225600})

    assert video.id == "123"
    assert video.title == ""
    assert video.view_count == 0
    assert video.created_at.year == 2026


def test_anthropic_image_blocks() -> None:
    assert _image_block("https://cdn.example.com/t.jpg") == {
        "type": "image",
        "source": {"type": "url", "url": "https://cdn.example.com/t.jpg"},
    }
    assert _image_block("data:image/png;base64,AAAA") == {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"},
    }


def test_anthropic_image_fetch_failure_detection() -> None:
    failure = httpx.Response(
        400,
        json={"error": {"type": "invalid_request_error", "message": "Unable to download the file"}},
    )
    other = httpx.Response(400, json={"error": {"message": "max_tokens too large"}})

    assert _is_image_fetch_failure(failure) is True
    assert _is_image_fetch_failure(other) is False
    assert _is_image_fetch_failure(httpx.Response(500, text="Unable to download")) is False


@pytest.mark.asyncio
async def test_stub_llm_returns_analysis(llm_provider) -> None:
    response = await llm_provider.complete([LLMMessage(role="user", content="analyze")])

    data = json.loads(response.content)
    assert data["metadata"]["confidence"] == 0.9
    assert llm_provider.calls == [{"mode": "text", "image_count": 0}]


@pytest.mark.asyncio
async def test_stub_llm_image_fetch_failure() -> None:
    from winning_formula.adapters.llm.stub import StubLLMProvider

    provider = StubLLMProvider(fail_image_fetch=True)

    with pytest.raises(ImageFetchError):
        await provider.complete_with_vision(
            [VisionMessage(role="user", text="analyze", image_urls=["https://x/y.jpg"])]
        )
    response = await provider.complete_with_vision([VisionMessage(role="user", text="analyze")])
    assert response.model == "stub-vision-model"


@pytest.mark.asyncio
async def test_stub_llm_health_check(llm_provider) -> None:
    assert await llm_provider.health_check() is True
