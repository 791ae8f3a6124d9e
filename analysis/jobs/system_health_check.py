#!/usr/bin/env python3
import sys
import logging
import argparse
from typing import Optional

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.base import ScheduledJob
from analysis.jobs.video_status import approximate_object_count, count_statuses
from analysis.metrics import success_rate
from analysis.schemas.metrics import SystemHealthPayload
from core.logging import setup_json_logging
from core.models import AnalyticsSnapshot, SnapshotKind, SnapshotPeriod, VideoStatus
from core.timeutils import trailing_window
from storage.clients.object_store import ObjectStoreClient

logger = logging.getLogger(__name__)


class SystemHealthCheck(ScheduledJob):
    """Quarter-hourly processing success snapshot with an approximate raw-object count"""

    name = "system_health_check"

    def __init__(self, *args, store: Optional[ObjectStoreClient] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._owns_store = store is None
        self.store = store or ObjectStoreClient()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owns_store:
            self.store.close()
        super().__exit__(exc_type, exc_val, exc_tb)

    def run(self) -> AnalyticsSnapshot:
        now = self.now()
        since, _ = trailing_window(now, minutes=self.settings.health_window_minutes)

        try:
            logger.info("Starting system health check", extra=self.log_extra())

            statuses = count_statuses(self.db, since)
            ready = statuses[VideoStatus.READY.value]
            failed = statuses[VideoStatus.FAILED.value]
            processing = statuses[VideoStatus.PROCESSING.value]

            payload = SystemHealthPayload(
                processing_success_rate=success_rate(ready, failed, processing),
                processing_errors=failed,
                processing_in_flight=processing,
                videos_updated_last_hour=ready + failed + processing,
                storage_raw_files_count=approximate_object_count(
                    self.store, self.settings.raw_objects_prefix,
                    self.settings.health_storage_sample, self.trace_id,
                ),
            )
            snapshot = self.build_snapshot(
                SnapshotKind.SYSTEM_HEALTH, SnapshotPeriod.QUARTER_HOUR, payload.to_wire(),
                created_at=now, window_start=since, window_end=now,
            )
            self.commit(snapshot)

            logger.info("System health check completed", extra=self.log_extra(
                rows=payload.videos_updated_last_hour, kind=SnapshotKind.SYSTEM_HEALTH.value
            ))
            return snapshot

        except Exception as e:
            logger.error(f"System health check failed: {e}", extra=self.log_extra(error=str(e)))
            raise


def main():
    parser = argparse.ArgumentParser(description="Write a processing health snapshot")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    with SystemHealthCheck(dry_run=args.dry_run) as job:
        job.run()

if __name__ == "__main__":
    main()
