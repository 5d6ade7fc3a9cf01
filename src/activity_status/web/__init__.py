"""HTTP API for the activity status service."""

from activity_status.web.app import create_app

__all__ = ["create_app"]
