"""Tests for TikTok account sync."""

import pytest
from sqlalchemy import select

from winning_formula.adapters.tiktok.base import TikTokVideo
from winning_formula.adapters.tiktok.stub import StubVideoSource
from winning_formula.db.models import MetricSnapshotModel, TikTokAccountModel, VideoModel
from winning_formula.services.tiktok_sync import IMPORT_CONTENT_TYPE, TikTokSyncService


def _account(session, user_id: str, token: str | None, display_name: str | None = "shopgirl"):
    account = TikTokAccountModel(
        user_id=user_id, open_id=f"open-{user_id}", display_name=display_name, access_token=token
    )
    session.add(account)
    session.commit()
    return account


def _tiktok_video(video_id: str, views: int = 1000, **fields) -> TikTokVideo:
    return TikTokVideo(
        id=video_id,
        title=fields.pop("title", "Three ways to style cargo pants this season"),
        video_description=fields.pop("video_description", "Cargo pants styling #ootd"),
        view_count=views,
        like_count=fields.pop("like_count", 80),
        comment_count=fields.pop("comment_count", 10),
        share_count=fields.pop("share_count", 10),
        create_time=1767225600,
        **fields,
    )


@pytest.mark.asyncio
async def test_imports_new_videos_with_snapshot(session) -> None:
    account = _account(session, "user-1", "tok-1")
    source = StubVideoSource({"tok-1": [_tiktok_video("7300000001", cover_image_url="https://cdn/c.jpg")]})

    result = await TikTokSyncService(session, source=source).sync_account(account)

    assert result.status == "success"
    assert result.count == 1
    video = session.execute(select(VideoModel)).scalar_one()
    assert video.user_id == "user-1"
    assert video.tiktok_video_id == "7300000001"
    assert video.tiktok_url == "https://www.tiktok.com/@shopgirl/video/7300000001"
    assert video.content_type == IMPORT_CONTENT_TYPE
    assert video.hook == "Three ways to style cargo pants this season"[:50]
    assert video.caption == "Cargo pants styling #ootd"
    assert video.thumbnail_url == "https://cdn/c.jpg"
    assert video.analysis_status == "pending"
    snapshot = session.execute(select(MetricSnapshotModel)).scalar_one()
    assert snapshot.views == 1000
    assert snapshot.engagement_rate == pytest.approx(10.0)
    assert account.last_synced_at is not None


@pytest.mark.asyncio
async def test_untitled_video_gets_filename_from_id(session) -> None:
    account = _account(session, "user-1", "tok-1", display_name=None)
    source = StubVideoSource({"tok-1": [_tiktok_video("42", title="")]})

    await TikTokSyncService(session, source=source).sync_account(account)

    video = session.execute(select(VideoModel)).scalar_one()
    assert video.filename == "tiktok_42"
    assert video.tiktok_url == "https://www.tiktok.com/@open-user-1/video/42"


@pytest.mark.asyncio
async def test_second_run_appends_snapshot_only(session) -> None:
    account = _account(session, "user-1", "tok-1")
    source = StubVideoSource({"tok-1": [_tiktok_video("7300000001", views=1000)]})
    service = TikTokSyncService(session, source=source)

    await service.sync_account(account)
    source.videos_by_token["tok-1"] = [_tiktok_video("7300000001", views=5000, title="Renamed")]
    await service.sync_account(account)

    video = session.execute(select(VideoModel)).scalar_one()
    assert video.hook.startswith("Three ways")
    views = sorted(s.views for s in session.execute(select(MetricSnapshotModel)).scalars())
    assert views == [1000, 5000]


@pytest.mark.asyncio
async def test_sync_all_skips_and_isolates_failures(session) -> None:
    _account(session, "user-1", None)
    _account(session, "user-2", "bad-token")
    _account(session, "user-3", "tok-3")
    source = StubVideoSource(
        {"tok-3": [_tiktok_video("1"), _tiktok_video("2")]},
        failing_tokens={"bad-token"},
    )

    results = await TikTokSyncService(session, source=source).sync_all()

    by_user = {r.user_id: r for r in results}
    assert by_user["user-1"].to_dict() == {
        "user_id": "user-1",
        "status": "skipped",
        "reason": "no_token",
    }
    assert by_user["user-2"].status == "error"
    assert "access_token_invalid" in by_user["user-2"].error
    assert by_user["user-3"].to_dict() == {"user_id": "user-3", "status": "success", "count": 2}
    assert len(session.execute(select(VideoModel)).scalars().all()) == 2
