"""User video library: create, browse and soft-delete videos."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import desc, func, or_, select
from sqlalchemy.orm import Session

from winning_formula.db.models import MetricSnapshotModel, VideoModel, utcnow
from winning_formula.domain.enums import AnalysisStatus
from winning_formula.domain.errors import VideoNotFoundError
from winning_formula.logging import get_logger
from winning_formula.schemas.video import VideoCreate
from winning_formula.services.snapshots import latest_snapshot, latest_snapshots

logger = get_logger(__name__)


@dataclass
class VideoListing:
    """One page of a user's library with each video's current metrics."""

    videos: list[VideoModel]
    total: int
    page: int
    limit: int
    metrics: dict[UUID, MetricSnapshotModel] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


class VideoLibraryService:
    """Service for a user's video records."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_video(self, user_id: str, data: VideoCreate) -> VideoModel:
        """Create a video from uploaded metadata; it starts in ``pending``."""
        video = VideoModel(
            user_id=user_id,
            hook=data.hook,
            caption=data.caption,
            script=data.script,
            description=data.description,
            content_type=data.content_type,
            target_audience=data.target_audience,
            cta=data.cta,
            campaign_tag=data.campaign_tag,
            filename=data.filename,
            file_url=data.file_url,
            thumbnail_url=data.thumbnail_url,
            tiktok_url=data.tiktok_url,
            duration=data.duration,
            upload_date=data.upload_date,
            analysis_status=AnalysisStatus.PENDING,
        )
        self.session.add(video)
        self.session.commit()
        self.session.refresh(video)

        logger.info("video_created", video_id=str(video.id), user_id=user_id)
        return video

    def list_videos(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        content_type: str | None = None,
        campaign_tag: str | None = None,
    ) -> VideoListing:
        """List the user's non-deleted videos, newest first.

        Args:
            user_id: Library owner.
            page: 1-based page number.
            limit: Page size.
            search: Case-insensitive substring matched against hook, caption,
                description and filename.
            content_type: Exact content-type label filter.
            campaign_tag: Exact campaign tag filter.
        """
        query = (
            select(VideoModel)
            .where(VideoModel.user_id == user_id)
            .where(VideoModel.deleted_at.is_(None))
        )
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    VideoModel.hook.ilike(pattern),
                    VideoModel.caption.ilike(pattern),
                    VideoModel.description.ilike(pattern),
                    VideoModel.filename.ilike(pattern),
                )
            )
        if content_type:
            query = query.where(VideoModel.content_type == content_type)
        if campaign_tag:
            query = query.where(VideoModel.campaign_tag == campaign_tag)

        total = self.session.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()

        videos = list(
            self.session.execute(
                query.order_by(desc(VideoModel.created_at))
                .offset((page - 1) * limit)
                .limit(limit)
            ).scalars()
        )

        return VideoListing(
            videos=videos,
            total=total,
            page=page,
            limit=limit,
            metrics=latest_snapshots(self.session, [v.id for v in videos]),
        )

    def get_video(self, user_id: str, video_id: UUID) -> VideoModel:
        """Get one of the user's videos.

        Raises:
            VideoNotFoundError: If missing, deleted or owned by someone else.
        """
        video = self.session.get(VideoModel, video_id)
        if video is None or video.deleted_at is not None or video.user_id != user_id:
            raise VideoNotFoundError(video_id)
        return video

    def current_metrics(self, video_id: UUID) -> MetricSnapshotModel | None:
        return latest_snapshot(self.session, video_id)

    def delete_video(self, user_id: str, video_id: UUID) -> VideoModel:
        """Soft-delete a video; its analysis and metrics are kept."""
        video = self.get_video(user_id, video_id)
        video.deleted_at = utcnow()
        self.session.commit()

        logger.info("video_deleted", video_id=str(video_id), user_id=user_id)
        return video
