"""Celery tasks for video analysis ingestion."""

from typing import Any
from uuid import UUID

from winning_formula.db.session import get_session_context
from winning_formula.domain.errors import WinningFormulaError
from winning_formula.logging import get_logger
from winning_formula.services.analyzer import VideoAnalyzer
from winning_formula.utils import run_async
from winning_formula.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="analyze_video")
def analyze_video_task(self: Any, video_id: str, force: bool = False) -> dict[str, Any]:
    """Analyze a single video.

    Args:
        video_id: UUID of the video
        force: Replace an existing analysis

    Returns:
        AnalysisOutcome as a dictionary
    """
    task_id = self.request.id
    logger.info("analyze_video_task_started", task_id=task_id, video_id=video_id, force=force)

    try:
        video_uuid = UUID(video_id)
    except ValueError as e:
        return {"success": False, "video_id": video_id, "error": f"Invalid video ID: {e}"}

    with get_session_context() as session:
        analyzer = VideoAnalyzer(session)
        try:
            outcome = run_async(analyzer.analyze_video(video_uuid, force=force))
        except WinningFormulaError as e:
            logger.warning("analyze_video_task_rejected", task_id=task_id, error=str(e))
            return {"success": False, "video_id": video_id, "error": str(e)}

    return outcome.to_dict()


@celery_app.task(bind=True, name="batch_analyze_videos")
def batch_analyze_videos_task(
    self: Any,
    limit: int | None = None,
    delay_seconds: float | None = None,
) -> dict[str, Any]:
    """Analyze the next slice of pending videos."""
    task_id = self.request.id
    logger.info("batch_analyze_task_started", task_id=task_id, limit=limit)

    with get_session_context() as session:
        result = run_async(
            VideoAnalyzer(session).batch_analyze(limit=limit, delay_seconds=delay_seconds)
        )

    return {"success": True, **result.to_dict()}
