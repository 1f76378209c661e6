"""TikTok video list client using the TikTok Open API."""

import httpx

from winning_formula.adapters.tiktok.base import (
    VIDEO_FIELDS,
    TikTokAPIError,
    TikTokVideo,
    VideoPage,
    VideoSource,
)
from winning_formula.config import settings
from winning_formula.logging import get_logger

logger = get_logger(__name__)


class TikTokVideoSource(VideoSource):
    """Fetches a creator's videos and lifetime counters from ``/video/list/``."""

    def __init__(
        self,
        base_url: str | None = None,
        page_size: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url or settings.tiktok_api_url
        self.page_size = page_size if page_size is not None else settings.tiktok_page_size
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30)
        return self._client

    async def fetch_page(self, access_token: str, cursor: int = 0) -> VideoPage:
        client = await self._get_client()
        response = await client.post(
            f"{self.base_url}/video/list/",
            params={"fields": ",".join(VIDEO_FIELDS)},
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
            json={"cursor": cursor, "max_count": self.page_size},
        )

        if response.status_code != 200:
            logger.error(
                "tiktok_video_list_http_error",
                status=response.status_code,
                body=response.text[:500],
            )
            raise TikTokAPIError(f"TikTok API error: {response.status_code}")

        data = response.json()
        error = data.get("error") or {}
        if error.get("code") != "ok":
            raise TikTokAPIError(
                f"TikTok API logic error: {error.get('message', 'Unknown error')}",
                code=error.get("code"),
            )

        body = data.get("data") or {}
        videos = [TikTokVideo.from_api(v) for v in body.get("videos") or []]

        logger.debug("tiktok_video_page_fetched", count=len(videos), cursor=cursor)

        return VideoPage(
            videos=videos,
            has_more=bool(body.get("has_more")),
            cursor=body.get("cursor"),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
