"""Per-user cache of computed pattern insights."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from winning_formula.db.models import UserPatternInsightModel, as_utc, utcnow
from winning_formula.domain.models import PatternInsight
from winning_formula.logging import get_logger

logger = get_logger(__name__)


class InsightCacheStore:
    """One cache entry per user; every write replaces the previous entry."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _entry(self, user_id: str) -> UserPatternInsightModel | None:
        return self.session.execute(
            select(UserPatternInsightModel).where(UserPatternInsightModel.user_id == user_id)
        ).scalar_one_or_none()

    def put(
        self,
        user_id: str,
        insights: list[PatternInsight],
        video_count: int,
        expires_at: datetime,
        calculated_at: datetime | None = None,
    ) -> UserPatternInsightModel:
        entry = self._entry(user_id)
        if entry is None:
            entry = UserPatternInsightModel(user_id=user_id)
            self.session.add(entry)

        entry.insights = [insight.to_dict() for insight in insights]
        entry.video_count = video_count
        entry.calculated_at = calculated_at or utcnow()
        entry.expires_at = expires_at
        self.session.commit()

        logger.debug("pattern_cache_written", user_id=user_id, insights=len(insights))
        return entry

    def get(self, user_id: str, now: datetime | None = None) -> UserPatternInsightModel | None:
        """Return the user's entry unless it is missing or expired."""
        entry = self._entry(user_id)
        if entry is None:
            return None
        now = now or utcnow()
        if as_utc(entry.expires_at) <= as_utc(now):
            logger.debug("pattern_cache_expired", user_id=user_id)
            return None
        return entry
