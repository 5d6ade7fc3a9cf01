"""Repository pattern implementations for data access."""

from activity_status.storage.repositories.status_repo import (
    HISTORY_KEY,
    LOCATION_KEY,
    STATUS_KEY,
    StatusRepository,
)

__all__ = [
    "HISTORY_KEY",
    "LOCATION_KEY",
    "STATUS_KEY",
    "StatusRepository",
]
