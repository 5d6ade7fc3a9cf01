"""
Location levels and reverse geocoding.

A location is kept at three levels: the text as submitted, a neighborhood for map
display and a city for the public activity feed. Levels come from reverse geocoding
the submitted coordinates when possible, otherwise from the comma separated parts of
the submitted text.
"""

import json
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import urlencode

from activity_status.core.fetcher import FeedFetcher
from activity_status.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_PLACE = "Unknown"


@dataclass(frozen=True)
class LocationLevels:
    """A location at exact, neighborhood and city level."""

    exact_address: str
    neighborhood: str
    city: str


def parse_address_levels(text: str) -> LocationLevels:
    """Split a free-text address into levels.

    Examples:
        "123 Main St, West Hollywood, Los Angeles, CA" -> West Hollywood / Los Angeles, CA
        "West Hollywood, Los Angeles, CA"              -> West Hollywood / Los Angeles, CA
        "Los Angeles, CA"                              -> Los Angeles / Los Angeles, CA
        "Tokyo"                                        -> Tokyo / Tokyo

    Args:
        text: Submitted location text

    Returns:
        LocationLevels
    """
    text = text.strip()
    parts = [part.strip() for part in text.split(",")]

    if len(parts) >= 4:
        return LocationLevels(exact_address=text, neighborhood=parts[1], city=f"{parts[2]}, {parts[3]}")
    if len(parts) == 3:
        return LocationLevels(exact_address=text, neighborhood=parts[0], city=f"{parts[1]}, {parts[2]}")
    if len(parts) == 2:
        return LocationLevels(exact_address=text, neighborhood=parts[0], city=text)
    return LocationLevels(exact_address=text, neighborhood=text, city=text)


class ReverseGeocoder:
    """Resolves coordinates to neighborhood and city via a Nominatim endpoint."""

    def __init__(self, fetcher: FeedFetcher, url: str = "https://nominatim.openstreetmap.org/reverse"):
        """Initialize geocoder.

        Args:
            fetcher: HTTP fetcher (carries timeout, retries and User-Agent)
            url: Reverse geocoding endpoint
        """
        self.fetcher = fetcher
        self.url = url

    def reverse(self, latitude: float, longitude: float) -> Optional[tuple[str, str]]:
        """Look up the neighborhood and city for a coordinate pair.

        Args:
            latitude: Latitude
            longitude: Longitude

        Returns:
            (neighborhood, city) or None when the lookup fails
        """
        query = urlencode({"lat": latitude, "lon": longitude, "format": "json", "addressdetails": 1})
        result = self.fetcher.fetch(f"{self.url}?{query}", headers={"Accept": "application/json"})
        if not result.success:
            logger.warning(f"Reverse geocoding failed for {latitude},{longitude}: {result.error}")
            return None

        try:
            data = json.loads(result.text or "")
        except json.JSONDecodeError as e:
            logger.warning(f"Reverse geocoding returned invalid JSON: {e}")
            return None

        address = data.get("address") if isinstance(data, dict) else None
        if not isinstance(address, dict):
            logger.warning(f"No address for {latitude},{longitude}")
            return None

        neighborhood = (
            address.get("suburb")
            or address.get("neighbourhood")
            or address.get("city_district")
            or address.get("city")
            or UNKNOWN_PLACE
        )
        city = address.get("city") or address.get("town") or address.get("village") or UNKNOWN_PLACE
        state = address.get("state") or address.get("province")

        return neighborhood, f"{city}, {state}" if state else city


def resolve_location_levels(
    text: str,
    coordinates: Optional[Sequence[float]] = None,
    geocoder: Optional[ReverseGeocoder] = None,
) -> LocationLevels:
    """Resolve levels for a submitted location.

    Reverse geocoding is used only when coordinates were submitted and a geocoder
    is available; any failure falls back to address parsing.

    Args:
        text: Submitted location text
        coordinates: Submitted [lat, lng], if any
        geocoder: Optional reverse geocoder

    Returns:
        LocationLevels
    """
    text = text.strip()
    if geocoder is not None and coordinates and len(coordinates) == 2:
        resolved = geocoder.reverse(coordinates[0], coordinates[1])
        if resolved is not None:
            neighborhood, city = resolved
            return LocationLevels(exact_address=text, neighborhood=neighborhood, city=city)
        logger.info("Falling back to address parsing for location levels")

    return parse_address_levels(text)
