"""Video library endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from winning_formula.api.deps import SessionDep, UserIdDep, VideoAnalyzerDep
from winning_formula.db.models import MetricSnapshotModel, VideoModel
from winning_formula.domain.errors import AnalysisInProgressError, VideoNotFoundError
from winning_formula.logging import get_logger
from winning_formula.schemas.video import VideoCreate
from winning_formula.services.library import VideoLibraryService

router = APIRouter(prefix="/videos", tags=["Videos"])
logger = get_logger(__name__)


class MetricsResponse(BaseModel):
    """Latest metric snapshot of a video."""

    views: int
    likes: int
    comments: int
    shares: int
    engagement_rate: float | None
    collected_at: datetime


class VideoResponse(BaseModel):
    """Video response model."""

    id: str
    hook: str | None
    caption: str | None
    script: str | None
    description: str | None
    content_type: str | None
    target_audience: list[str] | None
    cta: str | None
    campaign_tag: str | None
    filename: str | None
    file_url: str | None
    thumbnail_url: str | None
    tiktok_url: str | None
    duration: int | None
    upload_date: datetime | None
    analysis_status: str
    created_at: datetime
    current_metrics: MetricsResponse | None = None


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class VideoListResponse(BaseModel):
    """Paginated video list."""

    videos: list[VideoResponse]
    pagination: PaginationResponse


def _parse_video_id(video_id: str) -> UUID:
    try:
        return UUID(video_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid video ID format",
        )


def _model_to_response(
    video: VideoModel, snapshot: MetricSnapshotModel | None = None
) -> VideoResponse:
    """Convert a VideoModel (and its latest snapshot) to VideoResponse."""
    metrics = None
    if snapshot is not None:
        metrics = MetricsResponse(
            views=snapshot.views,
            likes=snapshot.likes,
            comments=snapshot.comments,
            shares=snapshot.shares,
            engagement_rate=snapshot.engagement_rate,
            collected_at=snapshot.collected_at,
        )
    return VideoResponse(
        id=str(video.id),
        hook=video.hook,
        caption=video.caption,
        script=video.script,
        description=video.description,
        content_type=video.content_type,
        target_audience=video.target_audience,
        cta=video.cta,
        campaign_tag=video.campaign_tag,
        filename=video.filename,
        file_url=video.file_url,
        thumbnail_url=video.thumbnail_url,
        tiktok_url=video.tiktok_url,
        duration=video.duration,
        upload_date=video.upload_date,
        analysis_status=video.analysis_status,
        created_at=video.created_at,
        current_metrics=metrics,
    )


def _not_found(e: VideoNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "",
    response_model=VideoListResponse,
    summary="List videos",
    description="List the caller's videos with current metrics, newest first.",
)
async def list_videos(
    session: SessionDep,
    user_id: UserIdDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = None,
    content_type: str | None = None,
    campaign_tag: str | None = None,
) -> VideoListResponse:
    """List the caller's videos."""
    listing = VideoLibraryService(session).list_videos(
        user_id,
        page=page,
        limit=limit,
        search=search,
        content_type=content_type,
        campaign_tag=campaign_tag,
    )
    return VideoListResponse(
        videos=[_model_to_response(v, listing.metrics.get(v.id)) for v in listing.videos],
        pagination=PaginationResponse(
            page=listing.page,
            limit=listing.limit,
            total=listing.total,
            pages=listing.pages,
        ),
    )


@router.post(
    "",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create video",
    description="Create a video from uploaded metadata. It is queued for analysis.",
)
async def create_video(
    request: VideoCreate, session: SessionDep, user_id: UserIdDep
) -> VideoResponse:
    """Create a video."""
    video = VideoLibraryService(session).create_video(user_id, request)
    return _model_to_response(video)


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    description="Get a video with its current metrics.",
)
async def get_video(video_id: str, session: SessionDep, user_id: UserIdDep) -> VideoResponse:
    """Get a video by ID."""
    video_uuid = _parse_video_id(video_id)
    library = VideoLibraryService(session)
    try:
        video = library.get_video(user_id, video_uuid)
    except VideoNotFoundError as e:
        raise _not_found(e)
    return _model_to_response(video, library.current_metrics(video_uuid))


@router.delete(
    "/{video_id}",
    summary="Delete video",
    description="Soft-delete a video.",
)
async def delete_video(video_id: str, session: SessionDep, user_id: UserIdDep) -> dict[str, bool]:
    """Soft-delete a video."""
    video_uuid = _parse_video_id(video_id)
    try:
        VideoLibraryService(session).delete_video(user_id, video_uuid)
    except VideoNotFoundError as e:
        raise _not_found(e)
    return {"success": True}


@router.post(
    "/{video_id}/analyze",
    summary="Analyze video",
    description="Run structured analysis of a video. No-op if already analyzed unless forced.",
)
async def analyze_video(
    video_id: str,
    session: SessionDep,
    user_id: UserIdDep,
    analyzer: VideoAnalyzerDep,
    force: bool = False,
) -> dict:
    """Analyze a video."""
    video_uuid = _parse_video_id(video_id)
    try:
        VideoLibraryService(session).get_video(user_id, video_uuid)
        outcome = await analyzer.analyze_video(video_uuid, force=force)
    except VideoNotFoundError as e:
        raise _not_found(e)
    except AnalysisInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not outcome.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=outcome.error or "Analysis failed",
        )
    return outcome.to_dict()


@router.get(
    "/{video_id}/analysis",
    summary="Get analysis status",
    description="Get a video's analysis lifecycle status and its analysis, if any.",
)
async def get_analysis_status(
    video_id: str,
    session: SessionDep,
    user_id: UserIdDep,
    analyzer: VideoAnalyzerDep,
) -> dict:
    """Get a video's analysis status."""
    video_uuid = _parse_video_id(video_id)
    try:
        VideoLibraryService(session).get_video(user_id, video_uuid)
        return analyzer.get_analysis_status(video_uuid)
    except VideoNotFoundError as e:
        raise _not_found(e)
