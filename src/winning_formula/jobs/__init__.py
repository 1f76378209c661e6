"""Celery job definitions."""

from winning_formula.jobs.analysis_tasks import analyze_video_task, batch_analyze_videos_task
from winning_formula.jobs.insight_tasks import (
    compute_user_patterns_task,
    generate_global_insights_task,
)
from winning_formula.jobs.sync_tasks import sync_tiktok_accounts_task

__all__ = [
    "analyze_video_task",
    "batch_analyze_videos_task",
    "compute_user_patterns_task",
    "generate_global_insights_task",
    "sync_tiktok_accounts_task",
]
