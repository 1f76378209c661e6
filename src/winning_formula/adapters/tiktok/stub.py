"""Stub TikTok video source for testing."""

from winning_formula.adapters.tiktok.base import TikTokAPIError, TikTokVideo, VideoPage, VideoSource
from winning_formula.logging import get_logger

logger = get_logger(__name__)


class StubVideoSource(VideoSource):
    """Serves fixed videos per access token, one page each.

    Tokens listed in ``failing_tokens`` raise TikTokAPIError.
    """

    def __init__(
        self,
        videos_by_token: dict[str, list[TikTokVideo]] | None = None,
        failing_tokens: set[str] | None = None,
    ) -> None:
        self.videos_by_token = videos_by_token or {}
        self.failing_tokens = failing_tokens or set()

    async def fetch_page(self, access_token: str, cursor: int = 0) -> VideoPage:
        logger.info("stub_fetch_video_page", cursor=cursor)
        if access_token in self.failing_tokens:
            raise TikTokAPIError("access_token_invalid", code="access_token_invalid")
        return VideoPage(videos=list(self.videos_by_token.get(access_token, [])))
