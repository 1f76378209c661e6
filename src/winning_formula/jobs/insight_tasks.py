"""Celery tasks for pattern and global insight generation."""

from typing import Any

from winning_formula.db.session import get_session_context
from winning_formula.logging import get_logger
from winning_formula.services.global_insights import GlobalInsightGenerator
from winning_formula.services.patterns import PatternInsightService
from winning_formula.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="compute_user_patterns")
def compute_user_patterns_task(self: Any, user_id: str) -> dict[str, Any]:
    """Recompute one user's pattern insights and refresh their cache."""
    logger.info("compute_user_patterns_started", task_id=self.request.id, user_id=user_id)

    with get_session_context() as session:
        result = PatternInsightService(session).compute(user_id)
        return result.to_dict()


@celery_app.task(bind=True, name="generate_global_insights")
def generate_global_insights_task(self: Any) -> dict[str, Any]:
    """Generate content-type insights and best practices across all users."""
    logger.info("generate_global_insights_started", task_id=self.request.id)

    with get_session_context() as session:
        result = GlobalInsightGenerator(session).generate()
        return {"success": True, **result.to_dict()}
