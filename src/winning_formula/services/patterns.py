"""Pattern aggregation over normalized analysis records.

Groups records by attribute value, averages engagement per group, assigns a
confidence tier and renders a recommendation. The service at the bottom wires
normalization, aggregation and caching together for one user.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from winning_formula.config import settings
from winning_formula.db.models import utcnow
from winning_formula.domain.enums import ConfidenceLevel, InsightCategory
from winning_formula.domain.models import (
    InsufficientData,
    NormalizedRecord,
    PatternAttribute,
    PatternInsight,
    PatternReport,
)
from winning_formula.logging import get_logger
from winning_formula.services.insight_cache import InsightCacheStore
from winning_formula.services.normalizer import AttributeNormalizer

logger = get_logger(__name__)

PATTERN_ATTRIBUTES: tuple[PatternAttribute, ...] = (
    PatternAttribute("hook_type", InsightCategory.HOOK, "type"),
    PatternAttribute("visual_environment", InsightCategory.VISUAL, "environment"),
    PatternAttribute("visual_lighting", InsightCategory.VISUAL, "lighting"),
    PatternAttribute("cta_type", InsightCategory.CTA, "type"),
)

COMBO_ATTRIBUTE = "combo"


def confidence_tier(count: int, total: int) -> ConfidenceLevel:
    """Tier a group by absolute size and share of the analyzed set."""
    percentage = 100 * count / total if total else 0.0
    if count >= 5 and percentage >= 30:
        return ConfidenceLevel.HIGH
    if count >= 3 and percentage >= 20:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def recommendation_for(category: InsightCategory, value: str, avg: float, count: int) -> str:
    """Render the human-readable sentence for a single-attribute pattern."""
    pretty = value.replace("_", " ")
    if category == InsightCategory.HOOK:
        return f'Your "{pretty}" hooks average {avg:.2f}% engagement across {count} videos.'
    if category == InsightCategory.VISUAL:
        return f'Videos in "{pretty}" settings get {avg:.2f}% engagement.'
    if category == InsightCategory.CTA:
        return f'"{pretty}" CTAs drive {avg:.2f}% engagement.'
    return f"{pretty} performs well with {avg:.2f}% engagement."


def combo_recommendation(environment: str, lighting: str, avg: float, count: int) -> str:
    return (
        f'Your "{environment}" environment with "{lighting}" lighting averages '
        f"{avg:.2f}% engagement. Seen in {count} videos."
    )


def _normalize_value(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned or None


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


class PatternAggregator:
    """Computes ranked pattern insights from normalized records."""

    def __init__(self, min_group_size: int | None = None) -> None:
        self.min_group_size = (
            min_group_size if min_group_size is not None else settings.pattern_min_group_size
        )

    def aggregate(self, records: list[NormalizedRecord]) -> list[PatternInsight]:
        """Return every qualifying pattern, sorted by average engagement (descending).

        Single attributes are evaluated first in declaration order, then the
        environment + lighting combination. Ties keep that order.
        """
        total = len(records)
        insights: list[PatternInsight] = []

        for attribute in PATTERN_ATTRIBUTES:
            groups: dict[str, list[float]] = defaultdict(list)
            for record in records:
                value = _normalize_value(record.value(attribute.key))
                if value is None:
                    continue
                groups[value].append(record.engagement_rate)

            for value, rates in groups.items():
                if len(rates) < self.min_group_size:
                    continue
                avg = _mean(rates)
                insights.append(
                    PatternInsight(
                        category=attribute.category,
                        attribute=attribute.name,
                        value=value,
                        avg_engagement=avg,
                        video_count=len(rates),
                        confidence_level=confidence_tier(len(rates), total),
                        recommendation=recommendation_for(
                            attribute.category, value, avg, len(rates)
                        ),
                    )
                )

        insights.extend(self._combo_insights(records, total))

        # sorted() is stable, so equal averages keep insertion order
        return sorted(insights, key=lambda i: i.avg_engagement, reverse=True)

    def _combo_insights(self, records: list[NormalizedRecord], total: int) -> list[PatternInsight]:
        groups: dict[tuple[str, str], list[float]] = defaultdict(list)
        for record in records:
            environment = _normalize_value(record.value("visual_environment"))
            lighting = _normalize_value(record.value("visual_lighting"))
            if environment is None or lighting is None:
                continue
            groups[(environment, lighting)].append(record.engagement_rate)

        insights = []
        for (environment, lighting), rates in groups.items():
            if len(rates) < self.min_group_size:
                continue
            avg = _mean(rates)
            insights.append(
                PatternInsight(
                    category=InsightCategory.VISUAL,
                    attribute=COMBO_ATTRIBUTE,
                    value=f"{environment} + {lighting}",
                    avg_engagement=avg,
                    video_count=len(rates),
                    confidence_level=confidence_tier(len(rates), total),
                    recommendation=combo_recommendation(environment, lighting, avg, len(rates)),
                )
            )
        return insights


class PatternInsightService:
    """Computes, caches and reads a user's pattern insights."""

    def __init__(
        self,
        session: Session,
        normalizer: AttributeNormalizer | None = None,
        aggregator: PatternAggregator | None = None,
        cache: InsightCacheStore | None = None,
        top_n: int | None = None,
    ) -> None:
        self.session = session
        self.normalizer = normalizer or AttributeNormalizer(session)
        self.aggregator = aggregator or PatternAggregator()
        self.cache = cache or InsightCacheStore(session)
        self.top_n = top_n if top_n is not None else settings.pattern_top_n

    def compute(self, user_id: str, now: datetime | None = None) -> PatternReport | InsufficientData:
        """Compute a fresh pattern report for a user and refresh their cache entry.

        Args:
            user_id: Owner of the analysis library.
            now: Reference time for the cache expiry (defaults to current UTC time).

        Returns:
            A PatternReport with the top insights, or InsufficientData when a
            threshold gate is not met. Gated runs leave the cache untouched.
        """
        result = self.normalizer.run(user_id)
        if result.insufficient is not None:
            return result.insufficient

        insights = self.aggregator.aggregate(result.records)
        now = now or utcnow()
        self.cache.put(
            user_id,
            insights,
            video_count=len(result.records),
            expires_at=now + timedelta(days=settings.pattern_cache_ttl_days),
            calculated_at=now,
        )

        logger.info(
            "pattern_insights_computed",
            user_id=user_id,
            records=len(result.records),
            insights=len(insights),
        )

        return PatternReport(
            insights=insights[: self.top_n],
            total_videos_analyzed=len(result.records),
            insights_generated=len(insights),
        )

    def cached(self, user_id: str, now: datetime | None = None) -> list[dict[str, Any]] | None:
        """Return the user's unexpired cached insights, or None."""
        entry = self.cache.get(user_id, now=now)
        return entry.insights if entry is not None else None
