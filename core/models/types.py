"""Shared column types and enumerations"""
import enum

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonPayload = JSON().with_variant(JSONB(), "postgresql")


class SnapshotKind(str, enum.Enum):
    API_METRICS = "api_metrics"
    USER_METRICS = "user_metrics"
    VIDEO_METRICS = "video_metrics"
    GEOGRAPHIC_DISTRIBUTION = "geographic_distribution"
    SYSTEM_HEALTH = "system_health"


class SnapshotPeriod(str, enum.Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    QUARTER_HOUR = "quarter-hour"


class AlertSeverity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class VideoStatus(str, enum.Enum):
    READY = "ready"
    FAILED = "failed"
    PROCESSING = "processing"


# BIGINT surrogate keys; SQLite only autoincrements INTEGER PRIMARY KEY
SurrogateKey = BigInteger().with_variant(Integer(), "sqlite")
