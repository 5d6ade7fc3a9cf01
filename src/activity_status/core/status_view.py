"""
Status view construction.
"""

from datetime import datetime
from typing import Optional

from activity_status.models import (
    Activity,
    LocationProjection,
    LocationState,
    ServiceHealth,
    StatusView,
)
from activity_status.utils.dates import to_epoch_millis


def build_status_view(
    history: list[Activity],
    location: LocationState,
    now: datetime,
    limit: int = 20,
    services: Optional[dict[str, dict[str, str]]] = None,
) -> StatusView:
    """Build the bounded status view from a history.

    Pure function; the caller persists the result.

    Args:
        history: Full history, newest first
        location: Location to publish
        now: Generation time, becomes ``lastUpdate``
        limit: Number of leading activities to include
        services: Static service health block

    Returns:
        StatusView
    """
    return StatusView(
        last_update=to_epoch_millis(now),
        location=LocationProjection.from_state(location),
        activities=list(history[:limit]),
        services={name: ServiceHealth.model_validate(entry) for name, entry in (services or {}).items()},
    )
