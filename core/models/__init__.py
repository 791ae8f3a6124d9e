"""Core database models"""
from .types import SnapshotKind, SnapshotPeriod, AlertSeverity, VideoStatus
from .users import User
from .videos import Video
from .watch_events import VideoWatchEvent
from .api_call_metrics import ApiCallMetric
from .analytics_snapshot import AnalyticsSnapshot
from .ranked_entry import RankedEntry
from .admin_alert import AdminAlert

__all__ = [
    "SnapshotKind", "SnapshotPeriod", "AlertSeverity", "VideoStatus",
    "User", "Video", "VideoWatchEvent", "ApiCallMetric",
    "AnalyticsSnapshot", "RankedEntry", "AdminAlert",
]
