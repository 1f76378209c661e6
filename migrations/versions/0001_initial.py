"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    # Videos table
    op.create_table(
        "videos",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("filename", sa.String(512), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("tiktok_video_id", sa.String(64), nullable=True),
        sa.Column("tiktok_url", sa.String(2048), nullable=True),
        sa.Column("hook", sa.Text(), nullable=True),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("script", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content_type", sa.String(100), nullable=True),
        sa.Column("target_audience", JSONB, nullable=True),
        sa.Column("cta", sa.String(100), nullable=True),
        sa.Column("campaign_tag", sa.String(100), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("upload_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("analysis_status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("analysis_priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("analysis_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tiktok_video_id"),
    )
    op.create_index("ix_videos_user_id", "videos", ["user_id"])
    op.create_index("ix_videos_content_type", "videos", ["content_type"])
    op.create_index("ix_videos_campaign_tag", "videos", ["campaign_tag"])
    op.create_index("ix_videos_analysis_status", "videos", ["analysis_status"])

    # Metric snapshots table (append-only)
    op.create_table(
        "metric_snapshots",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("video_id", sa.UUID(), nullable=False),
        sa.Column("views", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("likes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("comments", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("shares", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("engagement_rate", sa.Float(), nullable=True),
        sa.Column("collected_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_metric_snapshots_video_id", "metric_snapshots", ["video_id"])
    op.create_index("ix_metric_snapshots_collected_at", "metric_snapshots", ["collected_at"])

    # Video analyses table
    op.create_table(
        "video_analyses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("video_id", sa.UUID(), nullable=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("source_type", sa.String(20), nullable=False, server_default="ai"),
        sa.Column("hook_text", sa.Text(), nullable=True),
        sa.Column("hook_duration_seconds", sa.Float(), nullable=True),
        sa.Column("hook_type", sa.String(50), nullable=True),
        sa.Column("hook_visual_element", sa.Text(), nullable=True),
        sa.Column("hook_effectiveness_score", sa.Float(), nullable=True),
        sa.Column("caption_cta", sa.Text(), nullable=True),
        sa.Column("full_script", sa.Text(), nullable=True),
        sa.Column("script_key_messages", JSONB, nullable=True),
        sa.Column("voiceover_style", sa.String(50), nullable=True),
        sa.Column("visual_environment", sa.String(50), nullable=True),
        sa.Column("visual_lighting", sa.String(50), nullable=True),
        sa.Column("visual_camera_angles", JSONB, nullable=True),
        sa.Column("visual_model_description", sa.Text(), nullable=True),
        sa.Column("visual_product_display_method", sa.String(50), nullable=True),
        sa.Column("visual_color_palette", JSONB, nullable=True),
        sa.Column("visual_scene_breakdown", JSONB, nullable=True),
        sa.Column("content_type_primary", sa.String(50), nullable=True),
        sa.Column("content_type_secondary", sa.String(100), nullable=True),
        sa.Column("cta_primary", sa.Text(), nullable=True),
        sa.Column("cta_type", sa.String(50), nullable=True),
        sa.Column("cta_placement", sa.String(50), nullable=True),
        sa.Column("cta_urgency_level", sa.String(50), nullable=True),
        sa.Column("campaign_category", sa.String(50), nullable=True),
        sa.Column("analysis_confidence_score", sa.Float(), nullable=True),
        sa.Column("analysis_version", sa.String(20), nullable=True),
        sa.Column("needs_human_review", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("performance_tracked", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("raw_payload", JSONB, nullable=True),
        sa.Column("analyzed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("video_id"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_video_analyses_user_id", "video_analyses", ["user_id"])
    op.create_index("ix_video_analyses_analyzed_at", "video_analyses", ["analyzed_at"])

    # Per-user pattern insight cache
    op.create_table(
        "user_pattern_insights",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("insights", JSONB, nullable=True),
        sa.Column("video_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("calculated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    # Global insights
    op.create_table(
        "insights",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("scope_key", sa.String(255), nullable=True),
        sa.Column("insight_text", sa.Text(), nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("sample_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("supporting_video_ids", JSONB, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scope_key"),
    )
    op.create_index("ix_insights_category", "insights", ["category"])
    op.create_index("ix_insights_status", "insights", ["status"])

    # Best practices
    op.create_table(
        "best_practices",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("example_video_ids", JSONB, nullable=True),
        sa.Column("performance_avg", sa.Float(), nullable=True),
        sa.Column("use_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )

    # Linked TikTok accounts
    op.create_table(
        "tiktok_accounts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("open_id", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("tiktok_accounts")
    op.drop_table("best_practices")
    op.drop_table("insights")
    op.drop_table("user_pattern_insights")
    op.drop_table("video_analyses")
    op.drop_table("metric_snapshots")
    op.drop_table("videos")
