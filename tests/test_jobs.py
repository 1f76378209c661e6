"""Tests for Celery tasks, run eagerly against the test session."""

from contextlib import contextmanager

import pytest

from winning_formula.adapters.tiktok.base import TikTokVideo
from winning_formula.adapters.tiktok.stub import StubVideoSource
from winning_formula.db.models import TikTokAccountModel
from winning_formula.jobs import (
    analysis_tasks,
    insight_tasks,
    sync_tasks,
)
from winning_formula.worker import celery_app


@pytest.fixture(autouse=True)
def task_session(session, monkeypatch):
    """Point every task module at the test session."""

    @contextmanager
    def _context():
        yield session
        session.commit()

    for module in (analysis_tasks, insight_tasks, sync_tasks):
        monkeypatch.setattr(module, "get_session_context", _context)
    return session


def test_beat_schedule_covers_periodic_tasks() -> None:
    scheduled = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}

    assert scheduled == {
        "batch_analyze_videos",
        "sync_tiktok_accounts",
        "generate_global_insights",
    }


def test_analyze_video_task(session, make_video) -> None:
    video = make_video()

    result = analysis_tasks.analyze_video_task.apply(args=[str(video.id)]).get()

    assert result["success"] is True
    assert result["video_id"] == str(video.id)
    session.refresh(video)
    assert video.analysis_status == "completed"


def test_analyze_video_task_invalid_id() -> None:
    result = analysis_tasks.analyze_video_task.apply(args=["not-a-uuid"]).get()

    assert result["success"] is False
    assert "Invalid video ID" in result["error"]


def test_analyze_video_task_in_progress(make_video) -> None:
    video = make_video(analysis_status="processing")

    result = analysis_tasks.analyze_video_task.apply(args=[str(video.id)]).get()

    assert result["success"] is False
    assert "in progress" in result["error"]


def test_batch_analyze_task(make_video) -> None:
    make_video()
    make_video()

    result = analysis_tasks.batch_analyze_videos_task.apply(
        kwargs={"limit": 5, "delay_seconds": 0}
    ).get()

    assert result == {
        "success": True,
        "processed": 2,
        "successful": 2,
        "failed": 0,
        "reset_stale": 0,
    }


def test_compute_user_patterns_task_insufficient(make_analysis) -> None:
    make_analysis()

    result = insight_tasks.compute_user_patterns_task.apply(args=["user-1"]).get()

    assert result["success"] is False
    assert result["current"] == 1


def test_generate_global_insights_task(make_video, make_snapshot) -> None:
    make_snapshot(make_video(), engagement_rate=4.0)

    result = insight_tasks.generate_global_insights_task.apply().get()

    assert result["success"] is True
    assert result["count"] == 1
    assert result["global_avg"] == pytest.approx(4.0)


def test_sync_tiktok_task(session, monkeypatch) -> None:
    session.add(TikTokAccountModel(user_id="user-1", open_id="o1", access_token="tok"))
    session.commit()
    source = StubVideoSource({"tok": [TikTokVideo(id="99", title="Fit check", view_count=10)]})
    service_cls = sync_tasks.TikTokSyncService
    monkeypatch.setattr(sync_tasks, "TikTokSyncService", lambda s: service_cls(s, source=source))

    result = sync_tasks.sync_tiktok_accounts_task.apply().get()

    assert result == {
        "success": True,
        "results": [{"user_id": "user-1", "status": "success", "count": 1}],
    }
