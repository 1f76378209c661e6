"""Pulls videos and engagement counters from linked TikTok accounts."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from winning_formula.adapters.tiktok.base import TikTokVideo, VideoSource
from winning_formula.adapters.tiktok.client import TikTokVideoSource
from winning_formula.config import settings
from winning_formula.db.models import TikTokAccountModel, VideoModel, utcnow
from winning_formula.domain.enums import AnalysisStatus
from winning_formula.domain.models import AccountSyncResult
from winning_formula.logging import get_logger
from winning_formula.services.snapshots import record_snapshot

logger = get_logger(__name__)

IMPORT_CONTENT_TYPE = "TikTok Import"


class TikTokSyncService:
    """Imports TikTok videos and appends a metric snapshot per video per run."""

    def __init__(
        self,
        session: Session,
        source: VideoSource | None = None,
        max_pages: int | None = None,
    ) -> None:
        self.session = session
        self.source = source or TikTokVideoSource()
        self.max_pages = max_pages if max_pages is not None else settings.tiktok_max_pages

    def _accounts(self) -> list[TikTokAccountModel]:
        return list(
            self.session.execute(
                select(TikTokAccountModel).order_by(TikTokAccountModel.created_at)
            ).scalars()
        )

    def _upsert_video(self, account: TikTokAccountModel, item: TikTokVideo) -> VideoModel:
        video = self.session.execute(
            select(VideoModel).where(VideoModel.tiktok_video_id == item.id)
        ).scalar_one_or_none()
        if video is not None:
            return video

        handle = account.display_name or account.open_id
        video = VideoModel(
            user_id=account.user_id,
            tiktok_video_id=item.id,
            tiktok_url=f"https://www.tiktok.com/@{handle}/video/{item.id}" if handle else None,
            filename=item.title or f"tiktok_{item.id}",
            thumbnail_url=item.cover_image_url,
            description=item.video_description,
            duration=item.duration,
            content_type=IMPORT_CONTENT_TYPE,
            hook=item.title[:50],
            caption=item.video_description,
            script="",
            upload_date=item.created_at,
            analysis_status=AnalysisStatus.PENDING,
        )
        self.session.add(video)
        self.session.flush()
        return video

    async def sync_account(self, account: TikTokAccountModel) -> AccountSyncResult:
        """Sync one account. Failures are returned, not raised."""
        if not account.access_token:
            return AccountSyncResult(user_id=account.user_id, status="skipped", reason="no_token")

        try:
            items = await self.source.fetch_all(account.access_token, max_pages=self.max_pages)
            for item in items:
                video = self._upsert_video(account, item)
                record_snapshot(
                    self.session,
                    video.id,
                    views=item.view_count,
                    likes=item.like_count,
                    comments=item.comment_count,
                    shares=item.share_count,
                )
            account.last_synced_at = utcnow()
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("tiktok_account_sync_failed", user_id=account.user_id, error=str(e))
            return AccountSyncResult(user_id=account.user_id, status="error", error=str(e))

        logger.info("tiktok_account_synced", user_id=account.user_id, count=len(items))
        return AccountSyncResult(
            user_id=account.user_id,
            status="success",
            count=len(items),
            synced_at=account.last_synced_at,
        )

    async def sync_all(self) -> list[AccountSyncResult]:
        """Sync every linked account in turn."""
        accounts = self._accounts()
        logger.info("tiktok_sync_started", accounts=len(accounts))

        try:
            results = [await self.sync_account(account) for account in accounts]
        finally:
            await self.source.aclose()

        logger.info(
            "tiktok_sync_completed",
            succeeded=sum(1 for r in results if r.status == "success"),
            skipped=sum(1 for r in results if r.status == "skipped"),
            failed=sum(1 for r in results if r.status == "error"),
        )
        return results
