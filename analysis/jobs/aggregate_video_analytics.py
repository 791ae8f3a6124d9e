#!/usr/bin/env python3
import sys
import logging
import argparse
from typing import List

import pandas as pd
from sqlalchemy import func, select

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.base import ScheduledJob
from analysis.metrics import engagement_score
from analysis.schemas.metrics import TopVideo, VideoMetricsPayload, VideoWatchTime
from core.logging import setup_json_logging
from core.models import (
    AnalyticsSnapshot, SnapshotKind, SnapshotPeriod, Video, VideoStatus, VideoWatchEvent,
)
from core.timeutils import previous_utc_day, start_of_utc_day, trailing_window

logger = logging.getLogger(__name__)


class VideoEngagementAggregator(ScheduledJob):
    """Daily uploads, weekly top engagement and watch-time statistics"""

    name = "aggregate_video_analytics"

    def run(self) -> AnalyticsSnapshot:
        now = self.now()
        day_start, day_end = previous_utc_day(now)

        try:
            logger.info("Starting video analytics aggregation", extra=self.log_extra())

            daily_uploads = self._count_uploads(day_start, day_end)
            top_videos = self._top_engagement()
            watch_df = self._fetch_watch_events(day_start, day_end)
            watch_stats = self._watch_time_stats(watch_df)

            payload = VideoMetricsPayload(
                daily_uploads=daily_uploads,
                top_videos=top_videos,
                **watch_stats,
            )
            snapshot = self.build_snapshot(
                SnapshotKind.VIDEO_METRICS, SnapshotPeriod.DAILY, payload.to_wire(),
                created_at=now, snapshot_date=start_of_utc_day(now),
                window_start=day_start, window_end=day_end,
            )
            self.commit(snapshot)

            logger.info("Video analytics aggregation completed", extra=self.log_extra(
                rows=len(watch_df), kind=SnapshotKind.VIDEO_METRICS.value
            ))
            return snapshot

        except Exception as e:
            logger.error(f"Video analytics aggregation failed: {e}", extra=self.log_extra(error=str(e)))
            raise

    def _count_uploads(self, day_start, day_end) -> int:
        return self.db.scalar(
            select(func.count(Video.id))
            .where(Video.created_at >= day_start)
            .where(Video.created_at < day_end)
        ) or 0

    def _top_engagement(self) -> List[TopVideo]:
        """Ready videos from the trailing week ranked by likes + 2*comments"""
        since, _ = trailing_window(self.now(), days=self.settings.top_engagement_window_days)
        videos = self.db.execute(
            select(Video.id, Video.likes_count, Video.comments_count)
            .where(Video.status == VideoStatus.READY.value)
            .where(Video.created_at >= since)
            .order_by(Video.created_at.desc(), Video.id)
            .limit(self.settings.top_engagement_sample)
        ).all()

        scored = [
            TopVideo(
                id=video_id,
                score=engagement_score(likes, comments),
                likes=likes or 0,
                comments=comments or 0,
            )
            for video_id, likes, comments in videos
        ]
        scored.sort(key=lambda v: v.score, reverse=True)
        return scored[:self.settings.top_engagement_limit]

    def _fetch_watch_events(self, day_start, day_end) -> pd.DataFrame:
        rows = self.db.execute(
            select(VideoWatchEvent.video_id, VideoWatchEvent.watch_duration_seconds, VideoWatchEvent.completed)
            .where(VideoWatchEvent.created_at >= day_start)
            .where(VideoWatchEvent.created_at < day_end)
        ).all()
        return pd.DataFrame(rows, columns=["video_id", "watch_duration_seconds", "completed"])

    def _watch_time_stats(self, df: pd.DataFrame) -> dict:
        if df.empty:
            return {
                "average_watch_time_seconds": 0.0,
                "average_watch_time_per_video": [],
                "completion_rate": 0.0,
                "total_watch_events": 0,
            }

        per_video = (
            df.groupby("video_id", sort=True)["watch_duration_seconds"]
            .agg(avg_watch_time="mean", total_views="count")
            .reset_index()
            .sort_values("total_views", ascending=False, kind="stable")
            .head(self.settings.watch_time_top_videos)
        )

        return {
            "average_watch_time_seconds": round(float(df["watch_duration_seconds"].mean()), 2),
            "average_watch_time_per_video": [
                VideoWatchTime(
                    video_id=row.video_id,
                    avg_watch_time=float(row.avg_watch_time),
                    total_views=int(row.total_views),
                )
                for row in per_video.itertuples(index=False)
            ],
            "completion_rate": round(float(df["completed"].astype(bool).mean()), 2),
            "total_watch_events": len(df),
        }


def main():
    parser = argparse.ArgumentParser(description="Aggregate daily video engagement and watch time")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    with VideoEngagementAggregator(dry_run=args.dry_run) as job:
        job.run()

if __name__ == "__main__":
    main()
