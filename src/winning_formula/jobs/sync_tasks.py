"""Celery task for TikTok account sync."""

from typing import Any

from winning_formula.db.session import get_session_context
from winning_formula.logging import get_logger
from winning_formula.services.tiktok_sync import TikTokSyncService
from winning_formula.utils import run_async
from winning_formula.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="sync_tiktok_accounts")
def sync_tiktok_accounts_task(self: Any) -> dict[str, Any]:
    """Import videos and metric snapshots for every linked TikTok account."""
    logger.info("sync_tiktok_task_started", task_id=self.request.id)

    with get_session_context() as session:
        results = run_async(TikTokSyncService(session).sync_all())
        return {"success": True, "results": [r.to_dict() for r in results]}
