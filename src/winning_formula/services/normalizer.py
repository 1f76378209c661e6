"""Attribute normalization for pattern analysis.

Turns a user's VideoAnalysis rows into flat attribute records, each carrying a
single resolved engagement rate. Records without a usable (positive)
engagement rate are dropped.
"""

from dataclasses import dataclass

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from winning_formula.config import settings
from winning_formula.db.models import MetricSnapshotModel, VideoAnalysisModel
from winning_formula.domain.engagement import compute_engagement_rate
from winning_formula.domain.enums import SourceType
from winning_formula.domain.models import InsufficientData, NormalizedRecord
from winning_formula.logging import get_logger
from winning_formula.schemas.analysis import PerformanceSection
from winning_formula.services.snapshots import latest_snapshots

logger = get_logger(__name__)

CANONICAL_FIELDS = (
    "source_type",
    "hook_text",
    "hook_type",
    "hook_duration_seconds",
    "hook_visual_element",
    "hook_effectiveness_score",
    "caption_cta",
    "full_script",
    "script_key_messages",
    "voiceover_style",
    "visual_environment",
    "visual_lighting",
    "visual_camera_angles",
    "visual_product_display_method",
    "visual_color_palette",
    "content_type_primary",
    "content_type_secondary",
    "cta_primary",
    "cta_type",
    "cta_placement",
    "cta_urgency_level",
    "campaign_category",
)


def manual_engagement_candidate(analysis: VideoAnalysisModel) -> float:
    """Self-reported engagement rate from a manual entry's ``performance`` block, else 0."""
    if analysis.source_type != SourceType.MANUAL or not isinstance(analysis.raw_payload, dict):
        return 0.0
    performance = analysis.raw_payload.get("performance")
    if not isinstance(performance, dict):
        return 0.0
    return PerformanceSection.model_validate(performance).engagement_rate or 0.0


def resolve_engagement_rate(
    analysis: VideoAnalysisModel,
    snapshot: MetricSnapshotModel | None,
) -> float:
    """Resolve one engagement rate for an analysis.

    1. Manual entries contribute their self-reported rate as a candidate.
    2. A stored (non-zero) rate on the linked video's latest snapshot overrides it.
    3. Without a stored rate, and only when no candidate exists, the rate is
       derived from the snapshot's counters.

    A stored ``0.0`` counts as no stored rate. ``snapshot_engagement_rate``,
    used by the global generator, keeps it as a real reading.
    """
    rate = manual_engagement_candidate(analysis)

    if snapshot is not None:
        stored = snapshot.engagement_rate or 0.0
        if stored:
            rate = stored
        elif rate == 0:
            rate = compute_engagement_rate(
                snapshot.views, snapshot.likes, snapshot.comments, snapshot.shares
            )

    return rate


@dataclass
class NormalizationResult:
    """Normalized records, or the reason there are not enough of them."""

    records: list[NormalizedRecord]
    total_analyses: int
    insufficient: InsufficientData | None = None

    @property
    def ready(self) -> bool:
        return self.insufficient is None


class AttributeNormalizer:
    """Loads and normalizes a user's analysis library."""

    def __init__(
        self,
        session: Session,
        min_library_size: int | None = None,
        min_usable_records: int | None = None,
        usable_threshold_reported: int | None = None,
    ) -> None:
        self.session = session
        self.min_library_size = (
            min_library_size
            if min_library_size is not None
            else settings.pattern_min_library_size
        )
        self.min_usable_records = (
            min_usable_records
            if min_usable_records is not None
            else settings.pattern_min_usable_records
        )
        self.usable_threshold_reported = (
            usable_threshold_reported
            if usable_threshold_reported is not None
            else settings.pattern_usable_threshold_reported
        )

    def load_analyses(self, user_id: str) -> list[VideoAnalysisModel]:
        return list(
            self.session.execute(
                select(VideoAnalysisModel)
                .where(VideoAnalysisModel.user_id == user_id)
                .order_by(desc(VideoAnalysisModel.analyzed_at))
            ).scalars()
        )

    def normalize(self, analyses: list[VideoAnalysisModel]) -> list[NormalizedRecord]:
        """Resolve engagement for each analysis and keep those with a positive rate."""
        snapshots = latest_snapshots(
            self.session, [a.video_id for a in analyses if a.video_id is not None]
        )

        records = []
        for analysis in analyses:
            snapshot = snapshots.get(analysis.video_id) if analysis.video_id else None
            rate = resolve_engagement_rate(analysis, snapshot)
            if rate <= 0:
                continue
            records.append(
                NormalizedRecord(
                    analysis_id=analysis.id,
                    video_id=analysis.video_id,
                    engagement_rate=rate,
                    attributes={name: getattr(analysis, name) for name in CANONICAL_FIELDS},
                )
            )
        return records

    def run(self, user_id: str) -> NormalizationResult:
        """Load, gate and normalize the user's library."""
        analyses = self.load_analyses(user_id)
        total = len(analyses)

        if total < self.min_library_size:
            logger.info(
                "pattern_library_too_small",
                user_id=user_id,
                current=total,
                threshold=self.min_library_size,
            )
            return NormalizationResult(
                records=[],
                total_analyses=total,
                insufficient=InsufficientData(
                    message=f"Need at least {self.min_library_size} videos (currently {total})",
                    threshold=self.min_library_size,
                    current=total,
                ),
            )

        records = self.normalize(analyses)

        if len(records) < self.min_usable_records:
            logger.info(
                "pattern_engagement_data_missing",
                user_id=user_id,
                current=len(records),
                total=total,
            )
            return NormalizationResult(
                records=records,
                total_analyses=total,
                insufficient=InsufficientData(
                    message=(
                        f"Need at least {self.usable_threshold_reported} videos with "
                        f"performance data (currently {len(records)})"
                    ),
                    threshold=self.usable_threshold_reported,
                    current=len(records),
                ),
            )

        return NormalizationResult(records=records, total_analyses=total)
