"""Base interface for TikTok video list sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

VIDEO_FIELDS = (
    "id",
    "title",
    "video_description",
    "duration",
    "cover_image_url",
    "embed_html",
    "view_count",
    "share_count",
    "like_count",
    "comment_count",
    "create_time",
)


class TikTokAPIError(Exception):
    """TikTok returned a transport or logic error."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


@dataclass
class TikTokVideo:
    """One video record with its lifetime engagement counters."""

    id: str
    title: str = ""
    video_description: str = ""
    duration: int | None = None
    cover_image_url: str | None = None
    embed_html: str | None = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    create_time: int | None = None  # Unix timestamp

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TikTokVideo":
        """Build from a video object of the list endpoint."""
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            video_description=data.get("video_description") or "",
            duration=data.get("duration"),
            cover_image_url=data.get("cover_image_url"),
            embed_html=data.get("embed_html"),
            view_count=int(data.get("view_count") or 0),
            like_count=int(data.get("like_count") or 0),
            comment_count=int(data.get("comment_count") or 0),
            share_count=int(data.get("share_count") or 0),
            create_time=data.get("create_time"),
        )

    @property
    def created_at(self) -> datetime | None:
        if self.create_time is None:
            return None
        return datetime.fromtimestamp(self.create_time, tz=UTC)


@dataclass
class VideoPage:
    """One page of the video list."""

    videos: list[TikTokVideo] = field(default_factory=list)
    has_more: bool = False
    cursor: int | None = None


class VideoSource(ABC):
    """Abstract source of a creator's TikTok videos.

    Implementations:
    - TikTokVideoSource: TikTok Open API video list endpoint
    - StubVideoSource: Fixed records for testing
    """

    @abstractmethod
    async def fetch_page(self, access_token: str, cursor: int = 0) -> VideoPage:
        """Fetch one page of videos for the token's account."""
        ...

    async def fetch_all(self, access_token: str, max_pages: int = 10) -> list[TikTokVideo]:
        """Follow the cursor until exhausted or ``max_pages`` pages were read."""
        videos: list[TikTokVideo] = []
        cursor = 0
        for _ in range(max_pages):
            page = await self.fetch_page(access_token, cursor)
            videos.extend(page.videos)
            if not page.has_more or page.cursor is None:
                break
            cursor = page.cursor
        return videos

    async def aclose(self) -> None:
        """Release any connections held by the source."""
        return None
