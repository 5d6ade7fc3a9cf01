"""
Key-value store backends.

The service persists three string values (status view, history, location). Any
store offering get/put with an optional TTL will do; two are provided here.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from activity_status.config import StoreConfig, get_config
from activity_status.logger import get_logger
from activity_status.models import KVEntryModel
from activity_status.storage.database import DatabaseManager
from activity_status.utils.dates import Clock, utc_now

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """String key-value store with optional per-key TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when missing or expired."""

    @abstractmethod
    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store a value, replacing any previous one.

        Args:
            key: Key to write
            value: String value
            ttl_seconds: Seconds until the entry expires (never when None)
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class _MemoryEntry:
    value: str
    expires_at: Optional[datetime]


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe dict store honoring TTLs against an injectable clock."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now
        self._entries: dict[str, _MemoryEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None
        if ttl_seconds is not None:
            expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = _MemoryEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> list[str]:
        """Keys currently stored, expired ones included."""
        with self._lock:
            return list(self._entries)


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the ``kv_entries`` table.

    Expiry timestamps are kept as naive UTC, the way SQLite returns them.
    """

    def __init__(self, db_manager: DatabaseManager, clock: Optional[Clock] = None):
        """Initialize the store.

        Args:
            db_manager: DatabaseManager owning the engine; tables are created if missing
            clock: Optional clock returning aware UTC datetimes
        """
        self.db_manager = db_manager
        self._clock = clock or utc_now
        self.db_manager.init_db()

    def _now(self) -> datetime:
        return self._clock().replace(tzinfo=None)

    def get(self, key: str) -> Optional[str]:
        with self.db_manager.session() as session:
            entry = session.get(KVEntryModel, key)
            if entry is None:
                return None
            if entry.expires_at is not None and self._now() >= entry.expires_at:
                logger.debug(f"Key {key} expired at {entry.expires_at}")
                session.delete(entry)
                return None
            return entry.value

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        now = self._now()
        expires_at = now + timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None

        with self.db_manager.session() as session:
            entry = session.get(KVEntryModel, key)
            if entry is None:
                session.add(KVEntryModel(key=key, value=value, expires_at=expires_at, updated_at=now))
            else:
                entry.value = value
                entry.expires_at = expires_at
                entry.updated_at = now

    def delete(self, key: str) -> None:
        with self.db_manager.session() as session:
            entry = session.get(KVEntryModel, key)
            if entry is not None:
                session.delete(entry)


def create_store(
    backend: Optional[str] = None,
    path: Optional[str] = None,
    clock: Optional[Clock] = None,
    store_config: Optional[StoreConfig] = None,
) -> KeyValueStore:
    """Create the configured key-value store.

    Args:
        backend: "memory" or "sqlite" (configured backend when omitted)
        path: SQLite path or URL override
        clock: Optional clock for TTL handling
        store_config: Store settings (global config when omitted)

    Returns:
        KeyValueStore instance
    """
    store_config = store_config or get_config().store
    backend = (backend or store_config.backend).lower()

    if backend == "memory":
        logger.info("Using in-memory key-value store")
        return InMemoryKeyValueStore(clock=clock)
    if backend == "sqlite":
        db_manager = DatabaseManager(db_path=path, store_config=store_config)
        logger.info(f"Using SQLite key-value store at {db_manager.url}")
        return SqlKeyValueStore(db_manager, clock=clock)

    raise ValueError(f"Unknown store backend: {backend!r}")
