#!/usr/bin/env python3
import sys
import logging
import argparse
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import delete, select

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.base import ScheduledJob
from analysis.metrics import rank_by_score, trending_score
from core.logging import setup_json_logging
from core.models import RankedEntry, Video, VideoStatus
from core.timeutils import hours_between, trailing_window

logger = logging.getLogger(__name__)


class TrendingRanker(ScheduledJob):
    """
    Decay-weighted ranking of recently published videos.

    Every cycle replaces the trending_videos table wholesale: the delete of
    the previous ranking and the insert of the new one commit together.
    """

    name = "calculate_trending"

    def run(self) -> List[RankedEntry]:
        now = self.now()

        try:
            logger.info("Starting trending calculation", extra=self.log_extra())

            scored = self.score_candidates(now)
            ranked = rank_by_score(scored, self.settings.trending_keep)
            entries = [
                RankedEntry(video_id=video_id, score=score, rank=rank, calculated_at=now)
                for rank, video_id, score in ranked
            ]

            if self.dry_run:
                logger.info("Dry run mode - no database changes", extra=self.log_extra(rows=len(entries)))
                return entries

            deleted = self._replace_ranking(entries)

            logger.info("Trending calculation completed", extra=self.log_extra(
                rows=len(entries), candidates=len(scored), deleted=deleted
            ))
            return entries

        except Exception as e:
            logger.error(f"Trending calculation failed: {e}", extra=self.log_extra(error=str(e)))
            raise

    def score_candidates(self, now: datetime) -> List[Tuple[str, float]]:
        since, _ = trailing_window(now, days=self.settings.trending_window_days)
        videos = self.db.execute(
            select(Video.id, Video.likes_count, Video.comments_count, Video.shares_count, Video.created_at)
            .where(Video.status == VideoStatus.READY.value)
            .where(Video.created_at >= since)
            .order_by(Video.created_at.desc(), Video.id)
            .limit(self.settings.trending_sample)
        ).all()

        scored = []
        for video_id, likes, comments, shares, created_at in videos:
            hours = hours_between(created_at, now)
            if hours is None:
                # Unreadable creation time counts as the oldest possible age
                hours = hours_between(since, now)
            scored.append((video_id, trending_score(likes, comments, shares, hours)))
        return scored

    def _replace_ranking(self, entries: List[RankedEntry]) -> int:
        """Delete the stored ranking and insert ``entries`` in one transaction"""
        try:
            truncate_limit = self.settings.trending_truncate_limit
            if truncate_limit is None:
                deleted = self.db.execute(delete(RankedEntry)).rowcount
            else:
                stale_ids = list(self.db.scalars(
                    select(RankedEntry.id).order_by(RankedEntry.id).limit(truncate_limit)
                ))
                deleted = self.db.execute(
                    delete(RankedEntry).where(RankedEntry.id.in_(stale_ids))
                ).rowcount if stale_ids else 0

            self.db.add_all(entries)
            self.db.commit()
            return deleted
        except Exception:
            self.db.rollback()
            raise


def main():
    parser = argparse.ArgumentParser(description="Recalculate the trending video ranking")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    with TrendingRanker(dry_run=args.dry_run) as job:
        job.run()

if __name__ == "__main__":
    main()
