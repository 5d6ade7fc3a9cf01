"""Shared helpers."""

from activity_status.utils.dates import (
    Clock,
    ensure_utc,
    format_timestamp,
    from_epoch_millis,
    to_epoch_millis,
    utc_now,
)

__all__ = [
    "Clock",
    "ensure_utc",
    "format_timestamp",
    "from_epoch_millis",
    "to_epoch_millis",
    "utc_now",
]
