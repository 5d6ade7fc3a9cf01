"""API blueprints."""

from activity_status.web.blueprints.activities import ActivitiesBlueprint
from activity_status.web.blueprints.health import HealthBlueprint
from activity_status.web.blueprints.status import StatusBlueprint

__all__ = [
    "ActivitiesBlueprint",
    "HealthBlueprint",
    "StatusBlueprint",
]
