"""Unit tests for the paginated history reader."""

from datetime import datetime, timedelta, timezone

import pytest

from activity_status.core.history import HistoryReader
from conftest import make_activity


@pytest.fixture
def reader(repository) -> HistoryReader:
    return HistoryReader(repository)


def _fill(repository, count: int) -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    history = [make_activity(f"a{i}", start - timedelta(hours=i)) for i in range(count)]
    repository.put_history(history)


class TestHistoryReader:
    """Tests for HistoryReader.list."""

    def test_empty(self, reader):
        """Test an empty history yields an empty first page."""
        page = reader.list(page=1, limit=50)

        assert page.to_dict() == {
            "activities": [],
            "pagination": {
                "page": 1,
                "limit": 50,
                "total": 0,
                "totalPages": 0,
                "hasNext": False,
                "hasPrev": False,
            },
        }

    def test_last_partial_page(self, reader, repository):
        """Test five items at limit two give a final page with one item."""
        _fill(repository, 5)

        page = reader.list(page=3, limit=2)

        assert [a.id for a in page.activities] == ["a4"]
        assert page.pagination.total == 5
        assert page.pagination.total_pages == 3
        assert page.pagination.has_next is False
        assert page.pagination.has_prev is True

    def test_first_page(self, reader, repository):
        _fill(repository, 5)

        page = reader.list(page=1, limit=2)

        assert [a.id for a in page.activities] == ["a0", "a1"]
        assert page.pagination.has_next is True
        assert page.pagination.has_prev is False

    def test_defaults(self, reader, repository):
        _fill(repository, 3)

        page = reader.list()

        assert page.pagination.page == 1
        assert page.pagination.limit == 50
        assert len(page.activities) == 3

    def test_past_end(self, reader, repository):
        """Test pages past the end are empty, not an error."""
        _fill(repository, 2)

        page = reader.list(page=4, limit=2)

        assert page.activities == []
        assert page.pagination.has_next is False
        assert page.pagination.has_prev is True

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, 5)])
    def test_invalid_arguments(self, reader, page, limit):
        with pytest.raises(ValueError):
            reader.list(page=page, limit=limit)
