# APScheduler orchestrator for the analytics jobs
from __future__ import annotations
import sys
import argparse
import logging
from typing import Callable, Dict, Tuple

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

# Add project root to path
sys.path.insert(0, ".")

from analysis.jobs.aggregate_api_metrics import ApiLatencyAggregator
from analysis.jobs.aggregate_user_analytics import UserCohortAggregator
from analysis.jobs.aggregate_video_analytics import VideoEngagementAggregator
from analysis.jobs.calculate_trending import TrendingRanker
from analysis.jobs.check_system_alerts import SystemAlertEvaluator
from analysis.jobs.system_health_check import SystemHealthCheck
from core.logging import setup_json_logging
from storage.jobs.warm_cdn_cache import CdnCacheWarmer

log = logging.getLogger("runner")

def safe(fn):
    def _wrap():
        try:
            fn()
        except Exception:
            log.exception("Job failed: %s", getattr(fn, "__name__", "unknown"))
    _wrap.__name__ = getattr(fn, "__name__", "job")
    return _wrap

def _run(job_cls) -> Callable[[], object]:
    def _job():
        with job_cls() as job:
            return job.run()
    _job.__name__ = job_cls.name
    return _job

def calculate_trending_and_warm():
    """Rank, then warm the CDN for the entries the ranking just created"""
    with TrendingRanker() as ranker:
        ranker.run()
    # A warming failure must not mark the ranking run as failed
    safe(warm_cdn_cache)()

def warm_cdn_cache():
    with CdnCacheWarmer() as warmer:
        warmer.warm_pending()

# job id -> (callable, cron fields)
JOBS: Dict[str, Tuple[Callable[[], object], dict]] = {
    "aggregate_api_metrics": (_run(ApiLatencyAggregator), {"minute": "0"}),
    "aggregate_user_analytics": (_run(UserCohortAggregator), {"hour": "2", "minute": "0"}),
    "aggregate_video_analytics": (_run(VideoEngagementAggregator), {"hour": "3", "minute": "0"}),
    "calculate_trending": (calculate_trending_and_warm, {"minute": "*/30"}),
    "system_health_check": (_run(SystemHealthCheck), {"minute": "*/15"}),
    "check_system_alerts": (_run(SystemAlertEvaluator), {"minute": "*/15"}),
}

def build_scheduler() -> BlockingScheduler:
    sched = BlockingScheduler(timezone="UTC", job_defaults={"coalesce": True, "max_instances": 1})
    for job_id, (fn, cron) in JOBS.items():
        sched.add_job(safe(fn), CronTrigger(timezone="UTC", **cron), id=job_id, name=job_id)
    return sched

def main():
    parser = argparse.ArgumentParser(description="Run the analytics job scheduler")
    parser.add_argument("--once", choices=sorted(JOBS), help="Run a single job immediately and exit")

    args = parser.parse_args()

    setup_json_logging()

    if args.once:
        JOBS[args.once][0]()
        return

    sched = build_scheduler()
    log.info("Scheduler starting (UTC)...")
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("Scheduler stopped.")

if __name__ == "__main__":
    main()
