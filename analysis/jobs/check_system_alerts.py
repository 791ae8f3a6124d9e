#!/usr/bin/env python3
import sys
import logging
import argparse
from datetime import datetime
from typing import List, Optional

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.base import ScheduledJob
from analysis.jobs.video_status import approximate_object_count, count_statuses
from analysis.metrics import failure_rate, round_half_up
from core.logging import setup_json_logging
from core.models import AdminAlert, AlertSeverity, VideoStatus
from core.timeutils import trailing_window
from storage.clients.object_store import ObjectStoreClient

logger = logging.getLogger(__name__)


class SystemAlertEvaluator(ScheduledJob):
    """
    Threshold rules over processing failures and raw-object growth.

    Alerts are inserted every cycle a rule is violated; there is no
    suppression window, so a persistent condition re-alerts each run.
    """

    name = "check_system_alerts"

    def __init__(self, *args, store: Optional[ObjectStoreClient] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._owns_store = store is None
        self.store = store or ObjectStoreClient()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owns_store:
            self.store.close()
        super().__exit__(exc_type, exc_val, exc_tb)

    def run(self) -> List[AdminAlert]:
        now = self.now()
        since, _ = trailing_window(now, minutes=self.settings.health_window_minutes)

        try:
            logger.info("Starting system alert evaluation", extra=self.log_extra())

            statuses = count_statuses(self.db, since)
            rate = failure_rate(statuses[VideoStatus.READY.value], statuses[VideoStatus.FAILED.value])
            raw_objects = approximate_object_count(
                self.store, self.settings.raw_objects_prefix,
                self.settings.alert_storage_sample, self.trace_id,
            )

            alerts = self.evaluate(rate, raw_objects, now)
            if alerts:
                self.commit(*alerts)

            logger.info("System alert evaluation completed", extra=self.log_extra(rows=len(alerts)))
            return alerts

        except Exception as e:
            logger.error(f"System alert evaluation failed: {e}", extra=self.log_extra(error=str(e)))
            raise

    def evaluate(self, rate: float, raw_objects: Optional[int], now: datetime) -> List[AdminAlert]:
        alerts = []
        threshold = self.settings.failure_rate_threshold
        if rate > threshold:
            alerts.append(AdminAlert(
                type="processing_failure",
                severity=AlertSeverity.CRITICAL.value,
                message=f"Processing failure rate {round_half_up(rate * 100)}% exceeds {round_half_up(threshold * 100)}%",
                threshold=threshold,
                current_value=rate,
                acknowledged=False,
                created_at=now,
            ))

        object_threshold = self.settings.storage_object_threshold
        if (raw_objects or 0) > object_threshold:
            alerts.append(AdminAlert(
                type="storage_warning",
                severity=AlertSeverity.WARNING.value,
                message=f"Raw video object count {raw_objects} exceeds {object_threshold} (approx)",
                threshold=object_threshold,
                current_value=raw_objects,
                acknowledged=False,
                created_at=now,
            ))
        return alerts


def main():
    parser = argparse.ArgumentParser(description="Evaluate processing and storage alert thresholds")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    with SystemAlertEvaluator(dry_run=args.dry_run) as job:
        job.run()

if __name__ == "__main__":
    main()
