"""Read-side queries over the append-only snapshot log"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.models import AdminAlert, AnalyticsSnapshot, RankedEntry, SnapshotKind


def get_latest_snapshot(session: Session, kind: SnapshotKind) -> Optional[AnalyticsSnapshot]:
    """
    Newest snapshot of ``kind``.

    Snapshots are never updated in place; "latest" is always the first row
    ordered by created_at descending.
    """
    return session.scalars(
        select(AnalyticsSnapshot)
        .where(AnalyticsSnapshot.type == kind.value)
        .order_by(AnalyticsSnapshot.created_at.desc(), AnalyticsSnapshot.id.desc())
        .limit(1)
    ).first()


def get_trending(session: Session) -> List[RankedEntry]:
    return list(session.scalars(select(RankedEntry).order_by(RankedEntry.rank)))


def get_unacknowledged_alerts(session: Session, limit: int = 50) -> List[AdminAlert]:
    return list(session.scalars(
        select(AdminAlert)
        .where(AdminAlert.acknowledged.is_(False))
        .order_by(AdminAlert.created_at.desc(), AdminAlert.id.desc())
        .limit(limit)
    ))
