#!/usr/bin/env python3
import sys
import logging
import argparse
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.base import ScheduledJob
from analysis.metrics import retention_rate, tally_desc
from analysis.schemas.metrics import (
    CountryCount, GeographicDistributionPayload, RegionCount, UserMetricsPayload,
)
from core.logging import setup_json_logging
from core.models import AnalyticsSnapshot, SnapshotKind, SnapshotPeriod, User
from core.timeutils import (
    coerce_epoch_millis, previous_utc_day, start_of_utc_day, trailing_window,
)

logger = logging.getLogger(__name__)


def _active_since(value, cutoff_ms: float) -> bool:
    millis = coerce_epoch_millis(value)
    return millis is not None and millis >= cutoff_ms


def _chunks(items: List[str], size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


class UserCohortAggregator(ScheduledJob):
    """
    Daily active-user counts, one-day retention and geographic breakdown.

    Activity is read from ``last_login_at`` first. When that column errors
    (older schemas) or yields nothing, ``updated_at`` stands in for it.
    """

    name = "aggregate_user_analytics"

    def run(self) -> Tuple[AnalyticsSnapshot, AnalyticsSnapshot]:
        now = self.now()

        try:
            logger.info("Starting user analytics aggregation", extra=self.log_extra())

            dau, wau, mau = (self.count_active_users(days) for days in self.settings.active_user_windows_days)
            new_users, rate = self.one_day_retention()
            user_payload = UserMetricsPayload(
                dau=dau, wau=wau, mau=mau, d1_retention_rate=rate, new_users=new_users,
            )
            geo_payload = self.geographic_distribution()

            snapshot_date = start_of_utc_day(now)
            user_snapshot = self.build_snapshot(
                SnapshotKind.USER_METRICS, SnapshotPeriod.DAILY, user_payload.to_wire(),
                created_at=now, snapshot_date=snapshot_date,
            )
            geo_snapshot = self.build_snapshot(
                SnapshotKind.GEOGRAPHIC_DISTRIBUTION, SnapshotPeriod.DAILY, geo_payload.to_wire(),
                created_at=now, snapshot_date=snapshot_date,
            )
            self.commit(user_snapshot, geo_snapshot)

            logger.info("User analytics aggregation completed", extra=self.log_extra(
                rows=geo_payload.total_users_with_geo_data, kind=SnapshotKind.USER_METRICS.value
            ))
            return user_snapshot, geo_snapshot

        except Exception as e:
            logger.error(f"User analytics aggregation failed: {e}", extra=self.log_extra(error=str(e)))
            raise

    def _count_active(self, column, start: datetime, end: datetime) -> Optional[int]:
        """Distinct users with ``column`` inside [start, end]; None if the query fails"""
        try:
            return self.db.scalar(
                select(func.count(distinct(User.id))).where(column >= start).where(column <= end)
            ) or 0
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Activity field {column.key} not available: {e}", extra=self.log_extra(error=str(e)))
            return None

    def count_active_users(self, days: int) -> int:
        start, end = trailing_window(self.now(), days=days)
        primary = self._count_active(User.last_login_at, start, end)
        if primary:
            return primary

        logger.info(f"Falling back to updated_at for {days}d active users", extra=self.log_extra())
        return self._count_active(User.updated_at, start, end) or 0

    def _retained_in_chunk(self, chunk: List[str], cutoff_ms: float) -> int:
        try:
            rows = self.db.execute(select(User.id, User.last_login_at).where(User.id.in_(chunk))).all()
            retained = sum(1 for _, seen in rows if _active_since(seen, cutoff_ms))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"last_login_at not available for retention: {e}", extra=self.log_extra(error=str(e)))
            retained = 0

        if retained:
            return retained

        rows = self.db.execute(select(User.id, User.updated_at).where(User.id.in_(chunk))).all()
        return sum(1 for _, seen in rows if _active_since(seen, cutoff_ms))

    def one_day_retention(self) -> Tuple[int, float]:
        """
        Share of yesterday's sign-ups that were active in the last 24 hours.

        Returns (cohort size, retention rate). The whole cohort is checked in
        membership chunks unless ``retention_sample_cap`` limits it to the
        first N users, in which case the rate is taken over that sample.
        """
        now = self.now()
        cohort_start, cohort_end = previous_utc_day(now)
        cohort = list(self.db.scalars(
            select(User.id)
            .where(User.created_at >= cohort_start)
            .where(User.created_at < cohort_end)
            .order_by(User.created_at, User.id)
        ))

        sample = cohort
        if self.settings.retention_sample_cap is not None:
            sample = cohort[:self.settings.retention_sample_cap]

        active_cutoff, _ = trailing_window(now, days=1)
        cutoff_ms = coerce_epoch_millis(active_cutoff)
        retained = sum(
            self._retained_in_chunk(chunk, cutoff_ms)
            for chunk in _chunks(sample, self.settings.retention_chunk_size)
        )

        logger.info("Retention cohort evaluated", extra=self.log_extra(rows=len(sample)))
        return len(cohort), retention_rate(retained, len(sample))

    def geographic_distribution(self) -> GeographicDistributionPayload:
        rows = self.db.execute(
            select(User.country_code, User.region)
            .where(User.country_code.is_not(None))
            .order_by(User.id)
        ).all()

        countries = tally_desc(country for country, _ in rows)
        regions = tally_desc(region for _, region in rows)
        return GeographicDistributionPayload(
            countries=[CountryCount(country_code=code, count=count) for code, count in countries],
            regions=[RegionCount(region=region, count=count) for region, count in regions],
            total_users_with_geo_data=len(rows),
        )


def main():
    parser = argparse.ArgumentParser(description="Aggregate daily user activity, retention and geography")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    with UserCohortAggregator(dry_run=args.dry_run) as job:
        job.run()

if __name__ == "__main__":
    main()
