"""Tests for the scheduler wiring"""
from unittest.mock import MagicMock, patch

from jobs import runner


class TestJobRegistry:

    def test_cadences(self):
        cron = {job_id: fields for job_id, (_, fields) in runner.JOBS.items()}
        assert cron == {
            "aggregate_api_metrics": {"minute": "0"},
            "aggregate_user_analytics": {"hour": "2", "minute": "0"},
            "aggregate_video_analytics": {"hour": "3", "minute": "0"},
            "calculate_trending": {"minute": "*/30"},
            "system_health_check": {"minute": "*/15"},
            "check_system_alerts": {"minute": "*/15"},
        }

    def test_scheduler_registers_every_job(self):
        sched = runner.build_scheduler()
        assert sorted(job.id for job in sched.get_jobs()) == sorted(runner.JOBS)


class TestSafe:

    def test_swallows_job_failure(self):
        def broken():
            raise RuntimeError("boom")

        wrapped = runner.safe(broken)
        wrapped()
        assert wrapped.__name__ == "broken"


class TestTrendingChain:

    def test_warmer_runs_after_ranking(self):
        calls = []
        ranker = MagicMock()
        ranker.return_value.__enter__.return_value.run.side_effect = lambda: calls.append("rank")
        warmer = MagicMock()
        warmer.return_value.__enter__.return_value.warm_pending.side_effect = lambda: calls.append("warm")

        with patch.object(runner, "TrendingRanker", ranker), patch.object(runner, "CdnCacheWarmer", warmer):
            runner.calculate_trending_and_warm()

        assert calls == ["rank", "warm"]

    def test_warming_failure_does_not_fail_ranking(self):
        warmer = MagicMock()
        warmer.return_value.__enter__.return_value.warm_pending.side_effect = RuntimeError("cdn down")

        with patch.object(runner, "TrendingRanker", MagicMock()), patch.object(runner, "CdnCacheWarmer", warmer):
            runner.calculate_trending_and_warm()
