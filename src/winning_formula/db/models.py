"""SQLAlchemy ORM models."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Video library
# =============================================================================


class VideoModel(Base):
    """Video asset owned by one user."""

    __tablename__ = "videos"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    filename: Mapped[str | None] = mapped_column(String(512), nullable=True)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    tiktok_video_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    tiktok_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    hook: Mapped[str | None] = mapped_column(Text, nullable=True)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    script: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    target_audience: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    cta: Mapped[str | None] = mapped_column(String(100), nullable=True)
    campaign_tag: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    upload_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    analysis_status: Mapped[str] = mapped_column(
        String(50), default="pending", server_default="pending", index=True
    )
    analysis_priority: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    analysis_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    metrics: Mapped[list["MetricSnapshotModel"]] = relationship(
        "MetricSnapshotModel",
        back_populates="video",
        cascade="all, delete-orphan",
        order_by="desc(MetricSnapshotModel.collected_at)",
    )
    analysis: Mapped["VideoAnalysisModel | None"] = relationship(
        "VideoAnalysisModel", back_populates="video", uselist=False
    )


class MetricSnapshotModel(Base):
    """Point-in-time engagement counters for a video (append-only)."""

    __tablename__ = "metric_snapshots"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    video_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("videos.id", ondelete="CASCADE"), index=True
    )
    views: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    likes: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    comments: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    shares: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    engagement_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    collected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )

    video: Mapped["VideoModel"] = relationship("VideoModel", back_populates="metrics")


# =============================================================================
# Creative analysis
# =============================================================================


class VideoAnalysisModel(Base):
    """Canonical creative attributes of a video (AI or manual)."""

    __tablename__ = "video_analyses"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    video_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=True, unique=True
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    source_type: Mapped[str] = mapped_column(String(20), default="ai", server_default="ai")

    # Hook
    hook_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    hook_duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    hook_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hook_visual_element: Mapped[str | None] = mapped_column(Text, nullable=True)
    hook_effectiveness_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Caption & script
    caption_cta: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_script: Mapped[str | None] = mapped_column(Text, nullable=True)
    script_key_messages: Mapped[list[str]] = mapped_column(JSONType, default=list)
    voiceover_style: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Visual
    visual_environment: Mapped[str | None] = mapped_column(String(50), nullable=True)
    visual_lighting: Mapped[str | None] = mapped_column(String(50), nullable=True)
    visual_camera_angles: Mapped[list[str]] = mapped_column(JSONType, default=list)
    visual_model_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    visual_product_display_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    visual_color_palette: Mapped[list[str]] = mapped_column(JSONType, default=list)
    visual_scene_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)

    # Classification
    content_type_primary: Mapped[str | None] = mapped_column(String(50), nullable=True)
    content_type_secondary: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # CTA
    cta_primary: Mapped[str | None] = mapped_column(Text, nullable=True)
    cta_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cta_placement: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cta_urgency_level: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Campaign
    campaign_category: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Provenance
    analysis_confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    analysis_version: Mapped[str | None] = mapped_column(String(20), nullable=True)
    needs_human_review: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    performance_tracked: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    raw_payload: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    analyzed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    video: Mapped["VideoModel | None"] = relationship("VideoModel", back_populates="analysis")


# =============================================================================
# Insights
# =============================================================================


class UserPatternInsightModel(Base):
    """Cached pattern insights for one user (recomputable, TTL-bound)."""

    __tablename__ = "user_pattern_insights"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    insights: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    video_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class InsightModel(Base):
    """System-wide finding derived from all users' videos."""

    __tablename__ = "insights"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    scope_key: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    insight_text: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    sample_size: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    supporting_video_ids: Mapped[list[str]] = mapped_column(JSONType, default=list)
    status: Mapped[str] = mapped_column(
        String(20), default="active", server_default="active", index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class BestPracticeModel(Base):
    """Outlier video promoted to a reusable exemplar."""

    __tablename__ = "best_practices"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    example_video_ids: Mapped[list[str]] = mapped_column(JSONType, default=list)
    performance_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    use_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(20), default="active", server_default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


# =============================================================================
# Linked accounts
# =============================================================================


class TikTokAccountModel(Base):
    """A user's linked TikTok account (tokens obtained by the OAuth flow)."""

    __tablename__ = "tiktok_accounts"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    open_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
