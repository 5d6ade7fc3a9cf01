"""Storage layer: key-value backends and typed repositories."""

from activity_status.storage.database import DatabaseManager
from activity_status.storage.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SqlKeyValueStore,
    create_store,
)
from activity_status.storage.repositories import StatusRepository

__all__ = [
    "DatabaseManager",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqlKeyValueStore",
    "StatusRepository",
    "create_store",
]
