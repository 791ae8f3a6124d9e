"""Windows, sample caps and alert thresholds shared by the scheduled jobs"""
from typing import Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ANALYTICS_", extra="ignore")

    # API latency
    api_window_minutes: int = 60

    # User cohorts
    active_user_windows_days: Tuple[int, int, int] = (1, 7, 30)
    retention_chunk_size: int = Field(default=10, ge=1)
    retention_sample_cap: Optional[int] = Field(default=None, ge=1)

    # Video engagement
    top_engagement_window_days: int = 7
    top_engagement_sample: int = 200
    top_engagement_limit: int = 20
    watch_time_top_videos: int = 20

    # Trending
    trending_window_days: int = 7
    trending_sample: int = 500
    trending_keep: int = 50
    trending_truncate_limit: Optional[int] = Field(default=None, ge=1)

    # Health and alerts
    health_window_minutes: int = 60
    health_storage_sample: int = 1000
    failure_rate_threshold: float = 0.10
    storage_object_threshold: int = 10000
    alert_storage_sample: int = 10001
    raw_objects_prefix: str = "raw-videos/"


def get_settings() -> AnalyticsSettings:
    return AnalyticsSettings()
