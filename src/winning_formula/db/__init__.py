"""Database layer."""

from winning_formula.db.models import (
    Base,
    BestPracticeModel,
    InsightModel,
    MetricSnapshotModel,
    TikTokAccountModel,
    UserPatternInsightModel,
    VideoAnalysisModel,
    VideoModel,
)
from winning_formula.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "BestPracticeModel",
    "InsightModel",
    "MetricSnapshotModel",
    "TikTokAccountModel",
    "UserPatternInsightModel",
    "VideoAnalysisModel",
    "VideoModel",
]
