"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from winning_formula.domain.enums import ConfidenceLevel, InsightCategory


@dataclass
class NormalizedRecord:
    """A VideoAnalysis flattened to canonical attributes plus its resolved engagement rate."""

    analysis_id: UUID
    video_id: UUID | None
    engagement_rate: float
    attributes: dict[str, Any] = field(default_factory=dict)

    def value(self, key: str) -> Any:
        """Return a canonical attribute value, or None when absent."""
        return self.attributes.get(key)


@dataclass(frozen=True)
class PatternAttribute:
    """A single attribute evaluated by the pattern aggregator."""

    key: str
    category: InsightCategory
    name: str


@dataclass
class PatternInsight:
    """One aggregated pattern: an attribute value and how it performs."""

    category: InsightCategory
    attribute: str
    value: str
    avg_engagement: float
    video_count: int
    confidence_level: ConfidenceLevel
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the dashboard payload shape."""
        return {
            "category": str(self.category),
            "attribute": self.attribute,
            "value": self.value,
            "avg_engagement": self.avg_engagement,
            "video_count": self.video_count,
            "confidence_level": str(self.confidence_level),
            "recommendation": self.recommendation,
        }


@dataclass
class InsufficientData:
    """Returned instead of insights when a user's library is not ready yet."""

    message: str
    threshold: int
    current: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "threshold": self.threshold,
            "current": self.current,
        }


@dataclass
class PatternReport:
    """Result of a successful pattern computation."""

    insights: list[PatternInsight]
    total_videos_analyzed: int
    insights_generated: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "insights": [i.to_dict() for i in self.insights],
            "total_videos_analyzed": self.total_videos_analyzed,
            "insights_generated": self.insights_generated,
        }


@dataclass
class GlobalInsightResult:
    """Summary of a global insight generation run."""

    count: int
    global_avg: float = 0.0
    insights_generated: int = 0
    best_practices_created: int = 0
    top_performers: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "global_avg": self.global_avg,
            "insights_generated": self.insights_generated,
            "best_practices_created": self.best_practices_created,
            "top_performers": self.top_performers,
        }


@dataclass
class AnalysisOutcome:
    """Result of analyzing a single video."""

    success: bool
    video_id: UUID
    analysis_id: UUID | None = None
    needs_review: bool | None = None
    already_analyzed: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "video_id": str(self.video_id),
            "analysis_id": str(self.analysis_id) if self.analysis_id else None,
            "needs_review": self.needs_review,
            "already_analyzed": self.already_analyzed,
            "error": self.error,
        }


@dataclass
class BatchAnalysisResult:
    """Counters from a batch analysis run."""

    processed: int = 0
    successful: int = 0
    failed: int = 0
    reset_stale: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "reset_stale": self.reset_stale,
        }


@dataclass
class AccountSyncResult:
    """Outcome of syncing one linked TikTok account."""

    user_id: str
    status: str  # success, skipped, error
    count: int = 0
    reason: str | None = None
    error: str | None = None
    synced_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"user_id": self.user_id, "status": self.status}
        if self.status == "success":
            data["count"] = self.count
        if self.reason:
            data["reason"] = self.reason
        if self.error:
            data["error"] = self.error
        return data
