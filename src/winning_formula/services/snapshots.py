"""Metric snapshot reads and writes."""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from winning_formula.db.models import MetricSnapshotModel, utcnow
from winning_formula.domain.engagement import compute_engagement_rate


def latest_snapshots(session: Session, video_ids: Iterable[UUID]) -> dict[UUID, MetricSnapshotModel]:
    """Map each video id to its most recently collected snapshot.

    Videos without snapshots are absent from the result.
    """
    ids = list(set(video_ids))
    if not ids:
        return {}

    rows = session.execute(
        select(MetricSnapshotModel)
        .where(MetricSnapshotModel.video_id.in_(ids))
        .order_by(MetricSnapshotModel.video_id, desc(MetricSnapshotModel.collected_at))
    ).scalars()

    latest: dict[UUID, MetricSnapshotModel] = {}
    for row in rows:
        latest.setdefault(row.video_id, row)
    return latest


def latest_snapshot(session: Session, video_id: UUID) -> MetricSnapshotModel | None:
    return latest_snapshots(session, [video_id]).get(video_id)


def snapshot_engagement_rate(snapshot: MetricSnapshotModel | None) -> float:
    """Stored rate when present, otherwise derived from the snapshot's counters.

    A stored ``0.0`` is a real reading here and is returned as is. The pattern
    normalizer treats it as missing instead (see ``resolve_engagement_rate``).
    """
    if snapshot is None:
        return 0.0
    if snapshot.engagement_rate is not None:
        return float(snapshot.engagement_rate)
    return compute_engagement_rate(snapshot.views, snapshot.likes, snapshot.comments, snapshot.shares)


def record_snapshot(
    session: Session,
    video_id: UUID,
    views: int,
    likes: int,
    comments: int,
    shares: int,
    collected_at: datetime | None = None,
) -> MetricSnapshotModel:
    """Append a snapshot, computing its engagement rate with the canonical formula."""
    snapshot = MetricSnapshotModel(
        video_id=video_id,
        views=views,
        likes=likes,
        comments=comments,
        shares=shares,
        engagement_rate=compute_engagement_rate(views, likes, comments, shares),
        collected_at=collected_at or utcnow(),
    )
    session.add(snapshot)
    return snapshot
