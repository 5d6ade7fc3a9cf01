"""Unit tests for the HTTP fetcher."""

import httpx
import pytest

from activity_status.core.factories import create_fetcher
from activity_status.core.fetcher import FeedFetcher, FetchResult, FetchStats
from conftest import mock_transport

URL = "https://example.com/feed.xml"


def make_fetcher(routes, max_retries: int = 0) -> FeedFetcher:
    return FeedFetcher(
        timeout_seconds=5,
        max_retries=max_retries,
        retry_delay_seconds=0,
        user_agent="Test-Agent/1.0",
        transport=mock_transport(routes),
    )


class SequenceRoute:
    """Answers with the given status codes in turn."""

    def __init__(self, *statuses: int, body: str = "ok"):
        self.statuses = list(statuses)
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return httpx.Response(status, text=self.body)


class TestFetchResult:
    """Tests for FetchResult dataclass."""

    def test_successful_result(self):
        result = FetchResult(success=True, url=URL, text="<rss/>", http_status=200)

        assert result.success is True
        assert result.error is None

    def test_failed_result_gets_default_error(self):
        result = FetchResult(success=False, url=URL)
        assert result.error == "Unknown error"

    def test_result_validation(self):
        """Test a successful result cannot carry an error."""
        with pytest.raises(ValueError):
            FetchResult(success=True, url=URL, error="Should not have error")


class TestFetchStats:
    """Tests for FetchStats."""

    def test_add_results(self):
        stats = FetchStats()
        stats.add_result(FetchResult(success=True, url=URL, fetch_time_seconds=0.5))
        stats.add_result(FetchResult(success=False, url=URL, error="Timeout: read", fetch_time_seconds=1.5))

        assert stats.total_requests == 2
        assert stats.successful_fetches == 1
        assert stats.failed_fetches == 1
        assert stats.total_time_seconds == 2.0
        assert stats.errors_by_type == {"Timeout": 1}
        assert stats.success_rate == 0.5

    def test_empty_success_rate(self):
        assert FetchStats().success_rate == 0.0


class TestFeedFetcher:
    """Tests for FeedFetcher.fetch."""

    def test_success(self):
        fetcher = make_fetcher({URL: "<rss/>"})

        result = fetcher.fetch(URL)

        assert result.success is True
        assert result.text == "<rss/>"
        assert result.http_status == 200
        assert fetcher.stats.successful_fetches == 1

    def test_sends_headers(self):
        """Test the user agent and extra headers reach the server."""
        route = SequenceRoute(200)
        fetcher = make_fetcher({URL: route})

        fetcher.fetch(URL, headers={"Authorization": "token abc"})

        request = route.requests[0]
        assert request.headers["User-Agent"] == "Test-Agent/1.0"
        assert request.headers["Authorization"] == "token abc"

    def test_client_error_not_retried(self):
        route = SequenceRoute(404)
        fetcher = make_fetcher({URL: route}, max_retries=3)

        result = fetcher.fetch(URL)

        assert result.success is False
        assert result.http_status == 404
        assert result.error.startswith("HTTP 404")
        assert len(route.requests) == 1

    def test_server_error_retried(self):
        """Test 5xx responses are retried until one succeeds."""
        route = SequenceRoute(503, 200, body="<rss/>")
        fetcher = make_fetcher({URL: route}, max_retries=2)

        result = fetcher.fetch(URL)

        assert result.success is True
        assert len(route.requests) == 2

    def test_retries_exhausted(self):
        route = SequenceRoute(500)
        fetcher = make_fetcher({URL: route}, max_retries=2)

        result = fetcher.fetch(URL)

        assert result.success is False
        assert len(route.requests) == 3
        assert fetcher.stats.failed_fetches == 1

    def test_network_error(self):
        fetcher = make_fetcher({URL: httpx.ConnectError("connection refused")})

        result = fetcher.fetch(URL)

        assert result.success is False
        assert result.error.startswith("Request error")

    def test_timeout(self):
        fetcher = make_fetcher({URL: httpx.ReadTimeout("timed out")})

        result = fetcher.fetch(URL)

        assert result.success is False
        assert result.error.startswith("Timeout")

    def test_follows_redirects(self):
        target = "https://example.com/new-feed.xml"
        routes = {
            URL: lambda request: httpx.Response(301, headers={"Location": target}),
            target: "<rss/>",
        }
        fetcher = make_fetcher(routes)

        result = fetcher.fetch(URL)

        assert result.success is True
        assert result.text == "<rss/>"


class TestValidateUrl:
    """Tests for FeedFetcher.validate_url."""

    @pytest.mark.parametrize("url", ["https://example.com/feed", "http://example.com/rss.xml"])
    def test_valid(self, url):
        assert make_fetcher({}).validate_url(url) == (True, None)

    def test_missing_host(self):
        valid, error = make_fetcher({}).validate_url("not a url")
        assert valid is False
        assert error == "Invalid URL format"

    def test_unsupported_scheme(self):
        valid, error = make_fetcher({}).validate_url("ftp://example.com/feed")
        assert valid is False
        assert "ftp" in error


class TestCreateFetcher:
    """Tests for create_fetcher."""

    def test_uses_config(self, config):
        fetcher = create_fetcher(config)

        assert fetcher.max_retries == 0
        assert fetcher.timeout_seconds == config.fetcher.timeout_seconds
        assert fetcher.user_agent == "Quarterly-Systems-Status/1.0"
