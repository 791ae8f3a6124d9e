#!/usr/bin/env python3
import sys
import logging
import argparse
from typing import Optional

import pandas as pd
from sqlalchemy import select

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.base import ScheduledJob
from analysis.metrics import round_half_up, safe_ratio, summarize_calls
from analysis.schemas.metrics import ApiMetricsPayload, FunctionMetrics
from core.logging import setup_json_logging
from core.models import AnalyticsSnapshot, ApiCallMetric, SnapshotKind, SnapshotPeriod
from core.timeutils import trailing_window

logger = logging.getLogger(__name__)


class ApiLatencyAggregator(ScheduledJob):
    """Hourly per-endpoint latency and error-rate rollup of raw call records"""

    name = "aggregate_api_metrics"

    def run(self) -> Optional[AnalyticsSnapshot]:
        now = self.now()
        window_start, window_end = trailing_window(now, minutes=self.settings.api_window_minutes)

        try:
            logger.info("Starting API metrics aggregation", extra=self.log_extra())

            calls_df = self._fetch_calls(window_start, window_end)

            # No records is "no data", not "zero latency": skip the write
            if calls_df.empty:
                logger.warning("No API call records in window", extra=self.log_extra())
                return None

            payload = self._aggregate(calls_df)
            snapshot = self.build_snapshot(
                SnapshotKind.API_METRICS, SnapshotPeriod.HOURLY, payload.to_wire(),
                created_at=now, window_start=window_start, window_end=window_end,
            )
            self.commit(snapshot)

            logger.info("API metrics aggregation completed", extra=self.log_extra(
                rows=len(calls_df), kind=SnapshotKind.API_METRICS.value
            ))
            return snapshot

        except Exception as e:
            logger.error(f"API metrics aggregation failed: {e}", extra=self.log_extra(error=str(e)))
            raise

    def _fetch_calls(self, window_start, window_end) -> pd.DataFrame:
        """Raw call records whose timestamp falls inside the window"""
        rows = self.db.execute(
            select(ApiCallMetric.function_name, ApiCallMetric.duration_ms, ApiCallMetric.status)
            .where(ApiCallMetric.timestamp >= window_start)
            .where(ApiCallMetric.timestamp <= window_end)
        ).all()

        if not rows:
            return pd.DataFrame()

        df = pd.DataFrame(rows, columns=["function_name", "duration_ms", "status"])
        df["is_error"] = df["status"] == "error"
        return df

    def _aggregate(self, df: pd.DataFrame) -> ApiMetricsPayload:
        functions = []
        for function_name, group in df.groupby("function_name", sort=True):
            stats = summarize_calls(group["duration_ms"].tolist(), int(group["is_error"].sum()))
            functions.append(FunctionMetrics(name=function_name, **stats))

        functions.sort(key=lambda f: f.total_calls, reverse=True)

        # Overall figures over the union of samples, not an average of group stats
        total_calls = len(df)
        total_errors = int(df["is_error"].sum())
        return ApiMetricsPayload(
            functions=functions,
            overall_avg_response_time=round_half_up(float(df["duration_ms"].mean())),
            overall_error_rate=round(safe_ratio(total_errors, total_calls), 3),
            total_calls=total_calls,
            total_errors=total_errors,
        )


def main():
    parser = argparse.ArgumentParser(description="Aggregate last hour of API call metrics")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    with ApiLatencyAggregator(dry_run=args.dry_run) as job:
        job.run()

if __name__ == "__main__":
    main()
