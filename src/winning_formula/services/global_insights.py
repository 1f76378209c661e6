"""System-wide insight generation across every user's videos."""

from collections import defaultdict
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from winning_formula.config import settings
from winning_formula.db.models import (
    BestPracticeModel,
    InsightModel,
    MetricSnapshotModel,
    VideoModel,
    utcnow,
)
from winning_formula.domain.engagement import exceeds
from winning_formula.domain.enums import InsightStatus
from winning_formula.domain.models import GlobalInsightResult
from winning_formula.logging import get_logger
from winning_formula.services.snapshots import latest_snapshots, snapshot_engagement_rate

logger = get_logger(__name__)

CONTENT_TYPE_CATEGORY = "content_type"
UNCATEGORIZED = "Uncategorized"
HIGH_PERFORMER = "high_performer"
HIGH_PERFORMER_CONTENT = (
    "This video has significantly higher engagement than average. "
    "Analyze its hook and structure."
)


def content_type_scope_key(label: str, now: datetime) -> str:
    """Key identifying one content-type insight per calendar month."""
    return f"{CONTENT_TYPE_CATEGORY}:{label}:{now:%Y-%m}"


class GlobalInsightGenerator:
    """Derives content-type insights and best-practice exemplars from all videos."""

    def __init__(
        self,
        session: Session,
        lift_threshold: float | None = None,
        outlier_threshold: float | None = None,
        confidence: float | None = None,
    ) -> None:
        self.session = session
        self.lift_threshold = (
            lift_threshold
            if lift_threshold is not None
            else settings.global_lift_threshold
        )
        self.outlier_threshold = (
            outlier_threshold
            if outlier_threshold is not None
            else settings.global_outlier_threshold
        )
        self.confidence = (
            confidence if confidence is not None else settings.global_insight_confidence
        )

    def _videos_with_metrics(self) -> list[VideoModel]:
        has_metrics = select(MetricSnapshotModel.video_id).distinct()
        return list(
            self.session.execute(
                select(VideoModel)
                .where(VideoModel.id.in_(has_metrics))
                .where(VideoModel.deleted_at.is_(None))
                .order_by(VideoModel.created_at)
            ).scalars()
        )

    def generate(self, now: datetime | None = None) -> GlobalInsightResult:
        """Run one generation pass.

        Returns a zero-count result when no video has metrics yet.
        """
        now = now or utcnow()
        videos = self._videos_with_metrics()
        if not videos:
            logger.info("global_insights_skipped", reason="no_videos_with_metrics")
            return GlobalInsightResult(count=0)

        snapshots = latest_snapshots(self.session, [v.id for v in videos])
        rates = {v.id: snapshot_engagement_rate(snapshots.get(v.id)) for v in videos}
        global_avg = sum(rates.values()) / len(videos)

        insights_generated = self._content_type_insights(videos, rates, global_avg, now)
        outliers = [
            v for v in videos if exceeds(rates[v.id], global_avg, self.outlier_threshold)
        ]
        best_practices_created = self._best_practices(outliers, rates)

        self.session.commit()

        result = GlobalInsightResult(
            count=len(videos),
            global_avg=global_avg,
            insights_generated=insights_generated,
            best_practices_created=best_practices_created,
            top_performers=len(outliers),
        )
        logger.info("global_insights_generated", **result.to_dict())
        return result

    def _content_type_insights(
        self,
        videos: list[VideoModel],
        rates: dict,
        global_avg: float,
        now: datetime,
    ) -> int:
        groups: dict[str, list[VideoModel]] = defaultdict(list)
        for video in videos:
            groups[video.content_type or UNCATEGORIZED].append(video)

        generated = 0
        for label, members in groups.items():
            if label == UNCATEGORIZED or len(members) < 2:
                continue

            group_avg = sum(rates[v.id] for v in members) / len(members)
            if not exceeds(group_avg, global_avg, self.lift_threshold):
                continue

            lift = (group_avg / global_avg - 1) * 100
            self._upsert_insight(
                scope_key=content_type_scope_key(label, now),
                text=f"{label} videos are outperforming the average by {lift:.0f}%.",
                sample_size=len(members),
                video_ids=[str(v.id) for v in members],
            )
            generated += 1
            logger.debug("content_type_insight", content_type=label, lift=round(lift, 2))

        return generated

    def _upsert_insight(self, scope_key: str, text: str, sample_size: int, video_ids: list[str]) -> InsightModel:
        insight = self.session.execute(
            select(InsightModel).where(InsightModel.scope_key == scope_key)
        ).scalar_one_or_none()
        if insight is None:
            insight = InsightModel(
                category=CONTENT_TYPE_CATEGORY,
                scope_key=scope_key,
                status=InsightStatus.ACTIVE,
            )
            self.session.add(insight)

        insight.insight_text = text
        insight.confidence_score = self.confidence
        insight.sample_size = sample_size
        insight.supporting_video_ids = video_ids
        return insight

    def _best_practices(self, outliers: list[VideoModel], rates: dict) -> int:
        referenced: set[str] = set()
        for ids in self.session.execute(select(BestPracticeModel.example_video_ids)).scalars():
            referenced.update(ids or [])

        created = 0
        for video in outliers:
            video_id = str(video.id)
            if video_id in referenced:
                continue
            self.session.add(
                BestPracticeModel(
                    type=HIGH_PERFORMER,
                    title=f"High Performing: {video.hook or video.content_type or 'Video'}",
                    content=HIGH_PERFORMER_CONTENT,
                    example_video_ids=[video_id],
                    performance_avg=rates[video.id],
                    use_count=0,
                    status=InsightStatus.ACTIVE,
                )
            )
            referenced.add(video_id)
            created += 1
        return created
