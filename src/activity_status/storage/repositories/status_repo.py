"""
Status repository: typed access to the three persisted records.

Stored layout:

    status_data       StatusView JSON, written with a TTL
    all_activities    History JSON array, no TTL
    current_location  LocationState JSON, no TTL

Reads are lenient. A malformed record is logged and treated as absent, and a
malformed history entry is skipped, so one bad write cannot take the service down.
"""

import json
from typing import Optional

from pydantic import ValidationError

from activity_status.logger import get_logger
from activity_status.models import Activity, LocationState, StatusView
from activity_status.storage.kv_store import KeyValueStore

logger = get_logger(__name__)

STATUS_KEY = "status_data"
HISTORY_KEY = "all_activities"
LOCATION_KEY = "current_location"


class StatusRepository:
    """Repository for the status view, activity history and location."""

    def __init__(self, store: KeyValueStore) -> None:
        """Initialize repository with a key-value store.

        Args:
            store: KeyValueStore instance
        """
        self.store = store

    def _load_json(self, key: str):
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed JSON under {key}: {e}")
            return None

    def get_history(self) -> list[Activity]:
        """Get the full activity history.

        Returns:
            Activities in stored order (newest first), empty when never written
        """
        data = self._load_json(HISTORY_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring non-list history under {HISTORY_KEY}")
            return []

        history = []
        for item in data:
            try:
                history.append(Activity.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed history entry: {e.error_count()} error(s)")
        return history

    def put_history(self, history: list[Activity]) -> None:
        """Persist the full activity history (no TTL).

        Args:
            history: Complete ordered history
        """
        payload = json.dumps([activity.to_dict() for activity in history])
        self.store.put(HISTORY_KEY, payload)

    def get_location(self) -> Optional[LocationState]:
        """Get the stored location.

        Returns:
            LocationState or None if never set or unreadable
        """
        data = self._load_json(LOCATION_KEY)
        if data is None:
            return None
        try:
            return LocationState.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed location record: {e.error_count()} error(s)")
            return None

    def put_location(self, location: LocationState) -> None:
        """Persist the current location (no TTL).

        Args:
            location: New location state
        """
        self.store.put(LOCATION_KEY, json.dumps(location.to_dict()))

    def get_status_view(self) -> Optional[StatusView]:
        """Get the cached status view.

        Returns:
            StatusView or None if missing, expired or unreadable
        """
        data = self._load_json(STATUS_KEY)
        if data is None:
            return None
        try:
            return StatusView.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed status view: {e.error_count()} error(s)")
            return None

    def put_status_view(self, view: StatusView, ttl_seconds: Optional[int] = None) -> None:
        """Persist the status view.

        Args:
            view: StatusView to cache
            ttl_seconds: Store TTL for the entry
        """
        self.store.put(STATUS_KEY, json.dumps(view.to_dict()), ttl_seconds=ttl_seconds)
