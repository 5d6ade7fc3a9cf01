"""
Status API blueprint.

Serves the cached status view, forced refreshes and manual location updates.
"""

from typing import Optional

from flask import Blueprint, current_app, request
from pydantic import BaseModel, Field

from activity_status.core.factories import Services
from activity_status.logger import get_logger
from activity_status.web.serializers import api_response

logger = get_logger(__name__)


class LocationUpdate(BaseModel):
    """Body of POST /api/location."""

    location: str = Field(..., min_length=1, description="Place name")
    activity: Optional[str] = Field(None, description="What is happening there")
    coordinates: Optional[list[float]] = Field(None, min_length=2, max_length=2, description="[lat, lng]")
    timestamp: Optional[str] = Field(None, description="ISO-8601 time the location applies")


def get_services() -> Services:
    """Services registered on the current application."""
    return current_app.extensions["activity_status"]


class StatusBlueprint:
    """Blueprint for status, refresh and location endpoints."""

    def __init__(self):
        self.blueprint = Blueprint("status", __name__, url_prefix="/api")
        self._register_routes()

    def _register_routes(self):
        """Register all status routes."""
        self.blueprint.add_url_rule("/status", view_func=self._status, methods=["GET"])
        self.blueprint.add_url_rule("/refresh", view_func=self._refresh, methods=["GET", "POST"])
        self.blueprint.add_url_rule("/location", view_func=self._update_location, methods=["POST"])

    def _status(self):
        """Get the status view, refreshing it when stale."""
        view = get_services().refresher.get_status()
        return api_response(view)

    def _refresh(self):
        """Force a refresh."""
        get_services().refresher.refresh()
        return api_response({"status": "refreshed"})

    def _update_location(self):
        """Set the current location."""
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")

        update = LocationUpdate.model_validate(data)
        get_services().location_store.set(
            update.location,
            coordinates=update.coordinates,
            timestamp=update.timestamp,
            activity=update.activity,
        )
        return api_response({"status": "location updated"})
