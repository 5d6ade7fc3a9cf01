"""
Location context store.

Holds the single current location. Setting it records a location activity in the
history and republishes the status view immediately.
"""

from datetime import datetime
from typing import Optional, Sequence, Union

from activity_status.config import LocationConfig, RefreshConfig, ServiceHealthConfig
from activity_status.core.geocoder import ReverseGeocoder, parse_address_levels, resolve_location_levels
from activity_status.core.merger import merge
from activity_status.core.normalizer import location_activity
from activity_status.core.parser import parse_timestamp
from activity_status.core.status_view import build_status_view
from activity_status.logger import get_logger
from activity_status.models import Activity, LocationState
from activity_status.storage.repositories import StatusRepository
from activity_status.utils.dates import Clock, format_timestamp, utc_now

logger = get_logger(__name__)


class LocationStore:
    """Read and update the current location."""

    def __init__(
        self,
        repository: StatusRepository,
        location_config: Optional[LocationConfig] = None,
        refresh_config: Optional[RefreshConfig] = None,
        services_config: Optional[ServiceHealthConfig] = None,
        clock: Optional[Clock] = None,
        geocoder: Optional[ReverseGeocoder] = None,
    ):
        """Initialize location store.

        Args:
            repository: Status repository
            location_config: Default location settings
            refresh_config: Status view size, TTL and merge policy
            services_config: Static service health block
            clock: Optional clock returning aware UTC datetimes
            geocoder: Optional reverse geocoder for submitted coordinates
        """
        self.repository = repository
        self.location_config = location_config or LocationConfig()
        self.refresh_config = refresh_config or RefreshConfig()
        self.services_config = services_config or ServiceHealthConfig()
        self.clock = clock or utc_now
        self.geocoder = geocoder

    def default_location(self) -> LocationState:
        """Location reported before any manual update."""
        name = self.location_config.default_name
        levels = parse_address_levels(name)
        return LocationState(
            name=name,
            coordinates=self.location_config.default_coordinates,
            timestamp=format_timestamp(self.clock()),
            neighborhood=levels.neighborhood,
            city=levels.city,
        )

    def get(self) -> LocationState:
        """Get the current location, or the default one if never set.

        Returns:
            LocationState
        """
        return self.repository.get_location() or self.default_location()

    def set(
        self,
        name: str,
        coordinates: Optional[Sequence[float]] = None,
        timestamp: Optional[Union[str, datetime]] = None,
        activity: Optional[str] = None,
    ) -> Activity:
        """Set the current location.

        Persists the location, appends a location activity to the history and
        writes a fresh status view without waiting for the freshness window.
        Everything is built before the first write, so invalid input leaves the
        store untouched.

        Args:
            name: Place name, surrounding whitespace is removed
            coordinates: [lat, lng], defaults to the configured coordinates
            timestamp: When the location applies, defaults to now
            activity: Optional free text describing what is happening there

        Returns:
            The recorded location activity

        Raises:
            ValueError: If name is empty or timestamp cannot be parsed
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Location name is required")

        now = self.clock()
        if timestamp is None:
            applies_at = now
        else:
            applies_at = parse_timestamp(timestamp)
            if applies_at is None:
                raise ValueError(f"Invalid timestamp: {timestamp!r}")

        # Levels only come from the geocoder for submitted coordinates
        levels = resolve_location_levels(name, coordinates, self.geocoder)

        location = LocationState(
            name=name,
            coordinates=list(coordinates) if coordinates else self.location_config.default_coordinates,
            timestamp=format_timestamp(applies_at),
            neighborhood=levels.neighborhood,
            city=levels.city,
        )

        entry = location_activity(location, now, activity=activity)
        result = merge(
            self.repository.get_history(),
            [entry],
            dedupe_within_batch=self.refresh_config.dedupe_within_batch,
        )
        view = build_status_view(
            result.history,
            location,
            now,
            limit=self.refresh_config.status_activity_limit,
            services=self.services_config.entries,
        )

        self.repository.put_location(location)
        self.repository.put_history(result.history)
        self.repository.put_status_view(view, ttl_seconds=self.refresh_config.status_ttl_seconds)

        logger.info(f"Location updated: {name} ({location.public_name}) at {location.timestamp}")
        return entry
