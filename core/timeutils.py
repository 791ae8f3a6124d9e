"""Window cutoffs and timestamp coercion shared by every aggregation job"""
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Tuple

DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(instant: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite hands them back without tzinfo)"""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def start_of_utc_day(instant: datetime) -> datetime:
    """Truncate an instant to UTC midnight"""
    instant = ensure_utc(instant)
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def trailing_window(now: datetime, days: int = 0, hours: int = 0,
                    minutes: int = 0) -> Tuple[datetime, datetime]:
    """(start, end) of a rolling window ending at ``now``"""
    now = ensure_utc(now)
    return now - timedelta(days=days, hours=hours, minutes=minutes), now


def previous_utc_day(now: datetime) -> Tuple[datetime, datetime]:
    """Half-open [start, end) bounds of the UTC day before ``now``"""
    today = start_of_utc_day(now)
    return today - DAY, today


def _millis_from_mapping(value: Mapping[str, Any]) -> Optional[float]:
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
    if not _is_number(seconds) or not _is_number(nanos):
        return None
    return seconds * 1000 + nanos // 1_000_000


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_epoch_millis(value: Any) -> Optional[float]:
    """
    Convert a timestamp-like value to epoch milliseconds.

    Accepts numeric epochs (already in milliseconds), datetimes (naive ones
    are read as UTC), objects exposing ``to_millis()`` or ``timestamp()``,
    and ``{seconds, nanoseconds}`` mappings. Anything else yields None;
    this function never raises.
    """
    try:
        if value is None:
            return None
        if _is_number(value):
            return value
        if isinstance(value, datetime):
            return ensure_utc(value).timestamp() * 1000
        if isinstance(value, Mapping):
            return _millis_from_mapping(value)

        to_millis = getattr(value, "to_millis", None)
        if callable(to_millis):
            millis = to_millis()
            return millis if _is_number(millis) else None

        to_seconds = getattr(value, "timestamp", None)
        if callable(to_seconds):
            seconds = to_seconds()
            return seconds * 1000 if _is_number(seconds) else None
    except Exception:
        return None
    return None


def to_utc(value: Any) -> Optional[datetime]:
    """Datetime for any value ``coerce_epoch_millis`` understands"""
    millis = coerce_epoch_millis(value)
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def hours_between(earlier: Any, later: Any) -> Optional[float]:
    """Elapsed hours between two timestamp-like values, None if either is unreadable"""
    start = coerce_epoch_millis(earlier)
    end = coerce_epoch_millis(later)
    if start is None or end is None:
        return None
    return (end - start) / 3_600_000
