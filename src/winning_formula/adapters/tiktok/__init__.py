"""TikTok video list adapters."""

from winning_formula.adapters.tiktok.base import (
    TikTokAPIError,
    TikTokVideo,
    VideoPage,
    VideoSource,
)
from winning_formula.adapters.tiktok.client import TikTokVideoSource
from winning_formula.adapters.tiktok.stub import StubVideoSource

__all__ = [
    "StubVideoSource",
    "TikTokAPIError",
    "TikTokVideo",
    "TikTokVideoSource",
    "VideoPage",
    "VideoSource",
]
