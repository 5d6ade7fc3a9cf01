"""Shared fixtures for unit tests."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

import httpx
import pytest

from activity_status.config import Config, FetcherConfig, LocationConfig, RefreshConfig
from activity_status.core.factories import Services, create_services
from activity_status.core.fetcher import FeedFetcher
from activity_status.core.sources import FeedSource, SourceKind
from activity_status.models import Activity, ActivityType
from activity_status.storage.kv_store import InMemoryKeyValueStore
from activity_status.storage.repositories import StatusRepository

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

COMMIT_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xml:lang="en-US">
  <id>tag:github.com,2008:/example/site/commits/main</id>
  <title>Recent Commits to site:main</title>
  <updated>2024-01-15T10:30:00Z</updated>
  <entry>
    <id>tag:github.com,2008:Grit::Commit/abc123def4567890abc123def4567890abc123de</id>
    <link type="text/html" rel="alternate" href="https://github.com/example/site/commit/abc123def4567890"/>
    <title>Fix header layout</title>
    <updated>2024-01-15T10:30:00Z</updated>
    <author><name>kmikeym</name></author>
    <content type="html">&lt;pre&gt;Fix header layout&lt;/pre&gt;</content>
  </entry>
  <entry>
    <id>tag:github.com,2008:Grit::Commit/0011223344556677889900112233445566778899</id>
    <link type="text/html" rel="alternate" href="https://github.com/example/site/commit/0011223344556677"/>
    <title>Add footer</title>
    <updated>2024-01-14T09:00:00Z</updated>
    <author><name>kmikeym</name></author>
  </entry>
</feed>
"""

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <link>https://news.example.com/</link>
    <description>News</description>
    <item>
      <title><![CDATA[Hello World]]></title>
      <link>https://news.example.com/hello-world</link>
      <pubDate>Mon, 15 Jan 2024 08:00:00 GMT</pubDate>
      <description>First post</description>
    </item>
    <item>
      <title>Second Post</title>
      <link>https://news.example.com/second</link>
      <pubDate>Sun, 14 Jan 2024 08:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


Route = Union[str, int, Callable[[httpx.Request], httpx.Response], Exception]


def mock_transport(routes: dict[str, Route]) -> httpx.MockTransport:
    """Build a MockTransport answering by URL.

    A str value is a 200 body, an int is a bare status code, an exception is raised
    as a network failure and a callable handles the request itself. Unknown URLs
    get a 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="missing")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return httpx.Response(route, text="")
        if isinstance(route, str):
            return httpx.Response(200, text=route)
        return route(request)

    return httpx.MockTransport(handler)


def make_activity(
    activity_id: str,
    timestamp: datetime,
    activity_type: ActivityType = ActivityType.CONTENT,
    source: str = "Test",
    **kwargs,
) -> Activity:
    """Build an Activity with sensible defaults."""
    return Activity(
        id=activity_id,
        type=activity_type,
        title=kwargs.pop("title", "Title"),
        description=kwargs.pop("description", f"Activity {activity_id}"),
        timestamp=timestamp,
        source=source,
        **kwargs,
    )


@pytest.fixture
def clock() -> FakeClock:
    """A clock fixed at 2024-01-15T12:00:00Z."""
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryKeyValueStore:
    """An empty in-memory store sharing the fake clock."""
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def repository(store) -> StatusRepository:
    """A repository over the in-memory store."""
    return StatusRepository(store)


@pytest.fixture
def config() -> Config:
    """Configuration with fast, deterministic refresh settings."""
    return Config(
        fetcher=FetcherConfig(max_retries=0, retry_delay_seconds=0, github_token=None),
        refresh=RefreshConfig(max_workers=4, source_timeout_seconds=10),
        location=LocationConfig(reverse_geocode=False),
    )


@pytest.fixture
def commit_source() -> FeedSource:
    return FeedSource(
        name="site commits",
        url="https://github.com/example/site/commits/main.atom",
        kind=SourceKind.COMMITS,
        repository="example/site",
    )


@pytest.fixture
def rss_source() -> FeedSource:
    return FeedSource(
        name="Example News",
        url="https://news.example.com/feed/",
        kind=SourceKind.RSS,
        category="content",
    )


def build_services(
    config: Config,
    store: InMemoryKeyValueStore,
    clock: FakeClock,
    sources: list[FeedSource],
    routes: dict[str, Route],
    fetcher: Optional[FeedFetcher] = None,
) -> Services:
    """Wire services around a mock HTTP transport."""
    fetcher = fetcher or FeedFetcher(
        timeout_seconds=5,
        max_retries=0,
        retry_delay_seconds=0,
        transport=mock_transport(routes),
    )
    return create_services(config=config, store=store, fetcher=fetcher, sources=sources, clock=clock)
