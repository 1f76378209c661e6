"""Video metadata schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ContentTypeLabel = Literal[
    "Product Demo",
    "Testimonial",
    "Problem-Solution",
    "Educational",
    "Behind-the-Scenes",
    "Trend/Meme",
    "Comparison",
    "Tutorial",
]

CtaLabel = Literal[
    "Link in Bio",
    "Visit Website",
    "Comment for Details",
    "Try Free",
    "Book Call",
    "Follow for More",
    "None",
]


class VideoCreate(BaseModel):
    """Metadata supplied when a video is uploaded."""

    hook: str = Field(..., min_length=1, max_length=280)
    caption: str = Field(..., min_length=1, max_length=2200)
    script: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    content_type: ContentTypeLabel | None = None
    target_audience: list[str] | None = None
    cta: CtaLabel | None = None
    campaign_tag: str | None = None
    filename: str | None = None
    file_url: str | None = None
    thumbnail_url: str | None = None
    tiktok_url: str | None = None
    duration: int | None = Field(default=None, ge=0)
    upload_date: datetime | None = None
