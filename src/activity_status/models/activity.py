"""
Activity, location and status records.

Python attributes are snake_case; the JSON written to the store and returned by the
API uses camelCase aliases (``locationTimestamp``, ``lastUpdate``, ``lastSeen``).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from activity_status.utils.dates import ensure_utc, format_timestamp


class ActivityType(str, Enum):
    """Kinds of activity shown in the feed."""

    DEVELOPMENT = "development"
    DEPLOYMENT = "deployment"
    CONTENT = "content"
    RESEARCH = "research"
    LOCATION = "location"


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dict using wire names."""
        return self.model_dump(mode="json", by_alias=True)


def _check_coordinates(v: Optional[list[float]]) -> Optional[list[float]]:
    if v is not None and len(v) != 2:
        raise ValueError("coordinates must be a [latitude, longitude] pair")
    return v


class Activity(CamelModel):
    """A single normalized activity.

    ``id`` is the deduplication key and is derived deterministically from the
    upstream item. Location fields record the location that was current when the
    activity was first merged and are never rewritten afterwards.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1, description="Deduplication key")
    type: ActivityType = Field(..., description="Activity category")
    title: str = Field(..., description="Short heading")
    description: str = Field(..., description="Human readable summary")
    timestamp: datetime = Field(..., description="When the upstream event happened")
    source: str = Field(..., description="Origin label, e.g. GitHub or a feed name")
    location: Optional[str] = Field(None, description="Location name at merge time")
    coordinates: Optional[list[float]] = Field(None, description="[lat, lng] at merge time")
    location_timestamp: Optional[str] = Field(None, description="Location timestamp at merge time")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Source specific details")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store timestamps as aware UTC."""
        return ensure_utc(v)

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: Optional[list[float]]) -> Optional[list[float]]:
        """Validate coordinate pair."""
        return _check_coordinates(v)

    @field_serializer("timestamp")
    def serialize_timestamp(self, v: datetime) -> str:
        return format_timestamp(v)

    def with_location(self, location: "LocationState") -> "Activity":
        """Copy of this activity carrying the given location context (city level)."""
        return self.model_copy(
            update={
                "location": location.public_name,
                "coordinates": list(location.coordinates),
                "location_timestamp": location.timestamp,
            }
        )


class LocationState(CamelModel):
    """The single current location record.

    ``name`` is the text as submitted. ``neighborhood`` and ``city`` are coarser
    levels derived from it (or from reverse geocoding); records written before the
    levels existed have them unset.
    """

    name: str = Field(..., min_length=1, description="Human readable place name")
    coordinates: list[float] = Field(..., description="[lat, lng]")
    timestamp: str = Field(..., description="ISO-8601 time the location was set")
    neighborhood: Optional[str] = Field(None, description="Neighborhood level, for map display")
    city: Optional[str] = Field(None, description="City level, for the activity feed")

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: list[float]) -> list[float]:
        """Validate coordinate pair."""
        return _check_coordinates(v)

    @property
    def public_name(self) -> str:
        """Name used on activities: the city level when known."""
        return self.city or self.name


class LocationProjection(CamelModel):
    """Location as published in the status view."""

    name: str
    coordinates: list[float]
    last_seen: str
    neighborhood: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_state(cls, state: LocationState) -> "LocationProjection":
        return cls(
            name=state.name,
            coordinates=list(state.coordinates),
            last_seen=state.timestamp,
            neighborhood=state.neighborhood,
            city=state.city,
        )


class ServiceHealth(CamelModel):
    """Static health entry for one service."""

    status: str
    uptime: str
    response_time: str


class StatusView(CamelModel):
    """Bounded, cacheable snapshot published at /api/status."""

    last_update: int = Field(..., description="Epoch milliseconds of generation")
    location: LocationProjection
    activities: list[Activity] = Field(default_factory=list)
    services: dict[str, ServiceHealth] = Field(default_factory=dict)


class Pagination(CamelModel):
    """Pagination block of a history page."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ActivityPage(CamelModel):
    """One page of the full activity history."""

    activities: list[Activity]
    pagination: Pagination
