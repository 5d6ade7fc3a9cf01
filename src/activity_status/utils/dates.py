"""
Time helpers.

All instants handled by the service are timezone-aware UTC datetimes. They are
written out in the millisecond ISO-8601 form browsers produce
(``2024-01-15T10:30:00.000Z``) and as epoch milliseconds where a number is needed.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Convert a datetime to aware UTC, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as ISO-8601 with millisecond precision and a Z suffix."""
    dt = ensure_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return (ensure_utc(dt) - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(value: int) -> datetime:
    """Inverse of to_epoch_millis."""
    return _EPOCH + timedelta(milliseconds=value)
