"""
Health API blueprint.
"""

from flask import Blueprint

from activity_status import __version__
from activity_status.web.blueprints.status import get_services
from activity_status.web.scheduler_manager import get_scheduler_manager
from activity_status.web.serializers import api_response


class HealthBlueprint:
    """Blueprint for liveness and scheduler state."""

    def __init__(self):
        self.blueprint = Blueprint("health", __name__, url_prefix="/api/health")
        self._register_routes()

    def _register_routes(self):
        self.blueprint.add_url_rule("", view_func=self._health, methods=["GET"])

    def _health(self):
        """Report liveness, the last refresh and scheduler statistics."""
        report = get_services().refresher.last_report
        last_refresh = None
        if report is not None:
            last_refresh = {
                "startedAt": report.started_at.isoformat(),
                "finishedAt": report.finished_at.isoformat() if report.finished_at else None,
                "candidates": report.candidates,
                "appended": report.appended,
                "failedSources": report.failed_sources,
            }

        return api_response({
            "status": "ok",
            "version": __version__,
            "lastRefresh": last_refresh,
            "scheduler": get_scheduler_manager().get_stats(),
        })
