"""
Paginated history reader.
"""

import math

from activity_status.models import ActivityPage, Pagination
from activity_status.storage.repositories import StatusRepository


class HistoryReader:
    """Serves pages of the full activity history."""

    def __init__(self, repository: StatusRepository):
        self.repository = repository

    def list(self, page: int = 1, limit: int = 50) -> ActivityPage:
        """Get one page of history, newest first.

        Pages past the end are empty rather than an error.

        Args:
            page: 1-based page number
            limit: Page size

        Returns:
            ActivityPage

        Raises:
            ValueError: If page or limit is below 1
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        history = self.repository.get_history()
        total = len(history)
        start = (page - 1) * limit
        end = start + limit

        return ActivityPage(
            activities=history[start:end],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
                has_next=end < total,
                has_prev=page > 1,
            ),
        )
