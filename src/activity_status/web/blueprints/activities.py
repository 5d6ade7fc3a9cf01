"""
Activity history API blueprint.
"""

from flask import Blueprint, request

from activity_status.web.blueprints.status import get_services
from activity_status.web.serializers import api_response


class ActivitiesBlueprint:
    """Blueprint for paginated history reads."""

    def __init__(self):
        self.blueprint = Blueprint("activities", __name__, url_prefix="/api/activities")
        self._register_routes()

    def _register_routes(self):
        self.blueprint.add_url_rule("", view_func=self._list, methods=["GET"])

    def _list(self):
        """List one page of history (page defaults to 1, limit to 50)."""
        page = request.args.get("page", 1, type=int)
        limit = request.args.get("limit", 50, type=int)
        return api_response(get_services().history.list(page=page, limit=limit))
