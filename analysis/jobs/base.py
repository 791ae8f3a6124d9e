import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core.db import SessionLocal
from core.logging import new_trace_id
from core.models import AnalyticsSnapshot, SnapshotKind, SnapshotPeriod
from core.settings import AnalyticsSettings, get_settings
from core.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ScheduledJob:
    """
    One timer-triggered unit of work owning a database session.

    Subclasses implement ``run()``. A job built without a session opens
    its own and closes it on exit; an injected session is left open.
    """

    name = "job"

    def __init__(self, session: Optional[Session] = None,
                 settings: Optional[AnalyticsSettings] = None,
                 now: Optional[datetime] = None,
                 dry_run: bool = False):
        self._owns_session = session is None
        self.db = session or SessionLocal()
        self.settings = settings or get_settings()
        self._now = ensure_utc(now) if now else None
        self.dry_run = dry_run
        self.trace_id = new_trace_id(self.name)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session:
            self.db.close()

    def now(self) -> datetime:
        """Fixed clock when one was injected, wall clock otherwise"""
        return self._now or utc_now()

    def log_extra(self, **fields) -> dict:
        return {"trace_id": self.trace_id, "job": self.name, **fields}

    def build_snapshot(self, kind: SnapshotKind, period: SnapshotPeriod, metrics: dict,
                       created_at: datetime, **extra) -> AnalyticsSnapshot:
        return AnalyticsSnapshot(
            type=kind.value,
            period=period.value,
            source="db_aggregation",
            metrics=metrics,
            created_at=created_at,
            **extra,
        )

    def commit(self, *rows) -> None:
        """Write every row in one transaction, or nothing"""
        if self.dry_run:
            logger.info("Dry run mode - no database changes", extra=self.log_extra(rows=len(rows)))
            return
        try:
            self.db.add_all(rows)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
