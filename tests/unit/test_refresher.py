"""Unit tests for the status refresher."""

from datetime import datetime, timezone

import httpx
import pytest

from activity_status.config import Config, FetcherConfig, RefreshConfig
from activity_status.core.sources import FeedSource, SourceKind
from activity_status.storage.repositories.status_repo import STATUS_KEY
from activity_status.utils.dates import to_epoch_millis
from conftest import COMMIT_FEED, FIXED_NOW, RSS_FEED, build_services, make_activity

COMMIT_URL = "https://github.com/example/site/commits/main.atom"
RSS_URL = "https://news.example.com/feed/"


class CountingRoute:
    """Route that answers with a fixed body and counts calls."""

    def __init__(self, body: str, on_request=None):
        self.body = body
        self.calls = 0
        self.on_request = on_request

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.on_request is not None:
            self.on_request()
        return httpx.Response(200, text=self.body)


@pytest.fixture
def default_routes():
    return {COMMIT_URL: COMMIT_FEED, RSS_URL: RSS_FEED}


class TestRefresh:
    """Tests for StatusRefresher.refresh."""

    def test_collects_and_merges(self, config, store, clock, commit_source, rss_source, default_routes):
        """Test a refresh merges commits and feed items into history and the view."""
        services = build_services(config, store, clock, [rss_source, commit_source], default_routes)

        view = services.refresher.refresh()

        history = services.repository.get_history()
        assert [a.id for a in history] == ["github-abc123de", "rss-aHR0cHM6Ly", "github-00112233"]
        assert [a.id for a in view.activities] == [a.id for a in history]
        assert view.last_update == to_epoch_millis(FIXED_NOW)
        assert set(view.services) == {"vibecode", "office", "main"}

    def test_links_sharing_prefix_collapse(self, config, store, clock, rss_source, default_routes):
        """Test feed items whose ids collide keep only the first."""
        services = build_services(config, store, clock, [rss_source], default_routes)

        services.refresher.refresh()

        history = services.repository.get_history()
        assert len(history) == 1
        assert history[0].description == "Published: Hello World"

    def test_second_refresh_adds_nothing(self, config, store, clock, commit_source, rss_source, default_routes):
        services = build_services(config, store, clock, [commit_source, rss_source], default_routes)

        services.refresher.refresh()
        first = [a.id for a in services.repository.get_history()]
        clock.advance(minutes=20)
        services.refresher.refresh()

        assert [a.id for a in services.repository.get_history()] == first
        assert services.refresher.last_report.appended == 0

    def test_stamps_default_location(self, config, store, clock, commit_source, default_routes):
        """Test new activities carry the location current at refresh time."""
        services = build_services(config, store, clock, [commit_source], default_routes)

        services.refresher.refresh()

        activity = services.repository.get_history()[0]
        assert activity.location == "Los Angeles, CA"
        assert activity.coordinates == [34.0522, -118.2437]
        assert activity.location_timestamp == "2024-01-15T12:00:00.000Z"

    def test_location_snapshot_taken_before_fetch(self, config, store, clock, commit_source):
        """Test a location update during the fetch does not restamp this refresh."""
        services_ref = {}

        def move():
            services_ref["services"].location_store.set("Portland, OR", coordinates=[45.5, -122.6])

        route = CountingRoute(COMMIT_FEED, on_request=move)
        services = build_services(config, store, clock, [commit_source], {COMMIT_URL: route})
        services_ref["services"] = services

        services.refresher.refresh()

        history = services.repository.get_history()
        commits = [a for a in history if a.id.startswith("github-")]
        assert {a.location for a in commits} == {"Los Angeles, CA"}
        # The location activity written mid-refresh survives the history write
        assert any(a.id.startswith("location-") for a in history)
        assert services.location_store.get().name == "Portland, OR"

    def test_view_shows_location_set_during_fetch(self, config, store, clock, commit_source):
        """Test the published view is not rolled back to the pre-fetch location."""
        services_ref = {}

        def move():
            services_ref["services"].location_store.set("Portland, OR", coordinates=[45.5, -122.6])

        route = CountingRoute(COMMIT_FEED, on_request=move)
        services = build_services(config, store, clock, [commit_source], {COMMIT_URL: route})
        services_ref["services"] = services

        view = services.refresher.refresh()

        assert view.location.name == "Portland, OR"
        assert view.location.coordinates == [45.5, -122.6]
        assert services.repository.get_status_view().location.name == "Portland, OR"
        commits = [a for a in view.activities if a.id.startswith("github-")]
        assert commits and {a.location for a in commits} == {"Los Angeles, CA"}

    def test_failed_source_isolated(self, config, store, clock, commit_source, rss_source):
        """Test one failing source does not affect the others."""
        routes = {COMMIT_URL: 500, RSS_URL: RSS_FEED}
        services = build_services(config, store, clock, [commit_source, rss_source], routes)

        view = services.refresher.refresh()

        assert [a.id for a in view.activities] == ["rss-aHR0cHM6Ly"]
        assert services.refresher.last_report.failed_sources == ["site commits"]

    def test_network_error_isolated(self, config, store, clock, commit_source, rss_source):
        routes = {COMMIT_URL: COMMIT_FEED, RSS_URL: httpx.ConnectError("refused")}
        services = build_services(config, store, clock, [commit_source, rss_source], routes)

        view = services.refresher.refresh()

        assert len(view.activities) == 2
        assert services.refresher.last_report.failed_sources == ["Example News"]

    def test_all_sources_failing(self, config, store, clock, commit_source, rss_source):
        """Test a refresh with no reachable source still publishes a view."""
        services = build_services(config, store, clock, [commit_source, rss_source], {})

        view = services.refresher.refresh()

        assert view.activities == []
        assert services.repository.get_status_view() is not None

    def test_first_source_wins_across_feeds(self, config, store, clock, rss_source, default_routes):
        """Test colliding ids from two feeds keep the earlier source's item."""
        other = FeedSource(name="Mirror", url="https://mirror.example.com/feed/", kind=SourceKind.RSS, category="content")
        routes = dict(default_routes)
        routes["https://mirror.example.com/feed/"] = RSS_FEED
        services = build_services(config, store, clock, [rss_source, other], routes)

        services.refresher.refresh()

        history = services.repository.get_history()
        assert len(history) == 1
        assert history[0].source == "Example News"

    def test_duplicate_commit_feeds(self, config, store, clock, commit_source):
        """Test the same commit seen through two feeds is kept once."""
        mirror = FeedSource(
            name="account",
            url="https://github.com/example.atom",
            kind=SourceKind.COMMITS,
            repository="all-repositories",
        )
        routes = {COMMIT_URL: COMMIT_FEED, "https://github.com/example.atom": COMMIT_FEED}
        services = build_services(config, store, clock, [commit_source, mirror], routes)

        services.refresher.refresh()

        history = services.repository.get_history()
        assert [a.id for a in history] == ["github-abc123de", "github-00112233"]
        assert history[0].description == "Pushed commit to site"

    def test_status_view_bounded(self, store, clock, commit_source, rss_source, default_routes):
        config = Config(
            fetcher=FetcherConfig(max_retries=0, retry_delay_seconds=0, github_token=None),
            refresh=RefreshConfig(status_activity_limit=1),
        )
        services = build_services(config, store, clock, [commit_source, rss_source], default_routes)

        view = services.refresher.refresh()

        assert len(view.activities) == 1
        assert len(services.repository.get_history()) == 3

    def test_single_candidate_scenario(self, config, store, clock):
        """Test one new candidate lands once, however often it is refreshed."""
        services = build_services(config, store, clock, [], {})
        candidate = make_activity("rss-abc123", datetime(2024, 1, 1, tzinfo=timezone.utc))
        services.refresher.collect = lambda: ([candidate], [])

        view = services.refresher.refresh()
        assert len(services.repository.get_history()) == 1
        assert len(view.activities) == 1

        services.refresher.refresh()
        assert len(services.repository.get_history()) == 1

    def test_report(self, config, store, clock, commit_source, default_routes):
        services = build_services(config, store, clock, [commit_source], default_routes)

        services.refresher.refresh()

        report = services.refresher.last_report
        assert report.started_at == FIXED_NOW
        assert report.candidates == 2
        assert report.appended == 2
        assert report.failed_sources == []


class TestGetStatus:
    """Tests for cache freshness handling."""

    def test_fresh_view_served_from_cache(self, config, store, clock, commit_source):
        route = CountingRoute(COMMIT_FEED)
        services = build_services(config, store, clock, [commit_source], {COMMIT_URL: route})

        services.refresher.get_status()
        clock.advance(minutes=5)
        view = services.refresher.get_status()

        assert route.calls == 1
        assert view.last_update == to_epoch_millis(FIXED_NOW)

    def test_stale_view_refreshed(self, config, store, clock, commit_source):
        """Test a view older than the freshness window is rebuilt."""
        route = CountingRoute(COMMIT_FEED)
        services = build_services(config, store, clock, [commit_source], {COMMIT_URL: route})

        services.refresher.get_status()
        clock.advance(minutes=11)
        view = services.refresher.get_status()

        assert route.calls == 2
        assert view.last_update == to_epoch_millis(clock())

    def test_expired_view_refreshed(self, config, store, clock, commit_source):
        """Test the stored view disappears after its TTL."""
        route = CountingRoute(COMMIT_FEED)
        services = build_services(config, store, clock, [commit_source], {COMMIT_URL: route})

        services.refresher.refresh()
        clock.advance(minutes=31)

        assert store.get(STATUS_KEY) is None
        services.refresher.get_status()
        assert route.calls == 2

    def test_history_has_no_ttl(self, config, store, clock, commit_source):
        services = build_services(config, store, clock, [commit_source], {COMMIT_URL: COMMIT_FEED})

        services.refresher.refresh()
        clock.advance(days=30)

        assert len(services.repository.get_history()) == 2
