"""Data models for the activity status service."""

from activity_status.models.activity import (
    Activity,
    ActivityPage,
    ActivityType,
    LocationProjection,
    LocationState,
    Pagination,
    ServiceHealth,
    StatusView,
)
from activity_status.models.base import Base
from activity_status.models.kv_entry import KVEntryModel

__all__ = [
    "Activity",
    "ActivityPage",
    "ActivityType",
    "Base",
    "KVEntryModel",
    "LocationProjection",
    "LocationState",
    "Pagination",
    "ServiceHealth",
    "StatusView",
]
