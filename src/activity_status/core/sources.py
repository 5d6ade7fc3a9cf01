"""
Polled sources and their collectors.

A source is one URL plus the knowledge of how to turn its response into
activities. Collecting a source raises SourceError on any failure so the fan-out
records it as a failed task; the refresh carries on with the other sources.
"""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from activity_status.config import FetcherConfig, RefreshConfig
from activity_status.core.fetcher import FeedFetcher
from activity_status.core.merger import sort_history
from activity_status.core.normalizer import (
    ACCOUNT_WIDE_REPOSITORY,
    RESEARCH_CATEGORY,
    normalize_commit,
    normalize_feed_item,
    normalize_github_event,
)
from activity_status.core.parser import parse_commit_items, parse_feed_items, parse_github_events
from activity_status.logger import get_logger
from activity_status.models import Activity

logger = get_logger(__name__)


class SourceKind(str, Enum):
    """How a source's response is interpreted."""

    COMMITS = "commits"
    GITHUB_EVENTS = "github_events"
    RSS = "rss"


# Sources are collected and merged in this order
KIND_ORDER = (SourceKind.COMMITS, SourceKind.GITHUB_EVENTS, SourceKind.RSS)


class SourceError(Exception):
    """A source could not be fetched or parsed."""


@dataclass(frozen=True)
class FeedSource:
    """A polled source.

    ``repository`` applies to commit feeds ("owner/name" or "all-repositories");
    ``category`` applies to RSS feeds ("research" or "content").
    """

    name: str
    url: str
    kind: SourceKind
    repository: Optional[str] = None
    category: Optional[str] = None

    @property
    def order(self) -> int:
        return KIND_ORDER.index(self.kind)


def default_sources(fetcher_config: Optional[FetcherConfig] = None) -> list[FeedSource]:
    """Built-in source list.

    The GitHub events API is included only when a token is configured.

    Args:
        fetcher_config: Fetcher configuration (for the GitHub token and user)

    Returns:
        Sources in collection order
    """
    sources = [
        FeedSource(
            name="quarterly-systems-landing commits",
            url="https://github.com/kmikeym/quarterly-systems-landing/commits/main.atom",
            kind=SourceKind.COMMITS,
            repository="kmikeym/quarterly-systems-landing",
        ),
        FeedSource(
            name="quarterlykb commits",
            url="https://github.com/kmikeym/quarterlykb/commits/v4.atom",
            kind=SourceKind.COMMITS,
            repository="kmikeym/quarterlykb",
        ),
        FeedSource(
            name="GitHub account activity",
            url="https://github.com/kmikeym.atom",
            kind=SourceKind.COMMITS,
            repository=ACCOUNT_WIDE_REPOSITORY,
        ),
    ]

    if fetcher_config is not None and fetcher_config.github_token:
        sources.append(github_events_source(fetcher_config))

    sources.extend([
        FeedSource(name="KmikeyM News", url="https://news.kmikeym.com/feed/", kind=SourceKind.RSS, category="content"),
        FeedSource(name="Substack", url="https://kmikeym.substack.com/feed", kind=SourceKind.RSS, category="content"),
        FeedSource(name="Letterboxd", url="https://letterboxd.com/kmikeym/rss/", kind=SourceKind.RSS, category=RESEARCH_CATEGORY),
        FeedSource(
            name="Bluesky",
            url="https://bsky.app/profile/did:plc:gagojcjzqigtnzz25jmgmhgq/rss",
            kind=SourceKind.RSS,
            category="content",
        ),
    ])
    return sources


def github_events_source(fetcher_config: FetcherConfig) -> FeedSource:
    """Source for the GitHub public events API of the configured user."""
    base_url = fetcher_config.github_api_url.rstrip("/")
    return FeedSource(
        name="GitHub events",
        url=f"{base_url}/users/{fetcher_config.github_user}/events/public",
        kind=SourceKind.GITHUB_EVENTS,
    )


def load_sources_from_yaml(path: str) -> list[FeedSource]:
    """Load sources from a YAML file.

    Expected layout::

        sources:
          - name: Substack
            url: https://example.substack.com/feed
            kind: rss
            category: content

    Args:
        path: Path to the YAML file

    Returns:
        Sources ordered by kind, file order preserved within a kind
    """
    yaml_file = Path(path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Sources file not found: {path}")

    with yaml_file.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("sources", []) if isinstance(data, dict) else data
    sources = []
    for index, entry in enumerate(entries or []):
        try:
            sources.append(
                FeedSource(
                    name=entry["name"],
                    url=entry["url"],
                    kind=SourceKind(entry.get("kind", SourceKind.RSS.value)),
                    repository=entry.get("repository"),
                    category=entry.get("category"),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid source #{index} in {path}: {e}") from e

    logger.info(f"Loaded {len(sources)} sources from {path}")
    return sorted(sources, key=lambda source: source.order)


def _fetch_text(source: FeedSource, fetcher: FeedFetcher, headers: Optional[dict] = None) -> str:
    result = fetcher.fetch(source.url, headers=headers)
    if not result.success:
        raise SourceError(f"{source.name}: {result.error}")
    return result.text or ""


def collect_source(
    source: FeedSource,
    fetcher: FeedFetcher,
    refresh_config: RefreshConfig,
    fetcher_config: Optional[FetcherConfig] = None,
) -> list[Activity]:
    """Fetch one source and normalize its items.

    Args:
        source: Source to collect
        fetcher: HTTP fetcher
        refresh_config: Per-feed item limits
        fetcher_config: Needed for the GitHub token on the events source

    Returns:
        Candidate activities in feed order

    Raises:
        SourceError: When the source cannot be fetched or decoded
    """
    if source.kind == SourceKind.COMMITS:
        text = _fetch_text(source, fetcher)
        items = parse_commit_items(text)[: refresh_config.items_per_feed]
        repository = source.repository or source.name
        return [normalize_commit(item, repository) for item in items]

    if source.kind == SourceKind.GITHUB_EVENTS:
        headers = {"Accept": "application/vnd.github+json"}
        if fetcher_config is not None and fetcher_config.github_token:
            headers["Authorization"] = f"token {fetcher_config.github_token}"
        text = _fetch_text(source, fetcher, headers=headers)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise SourceError(f"{source.name}: invalid JSON: {e}") from e
        events = parse_github_events(payload, limit=refresh_config.event_limit)
        activities = [normalize_github_event(event) for event in events]
        return [activity for activity in activities if activity is not None]

    text = _fetch_text(source, fetcher)
    items = parse_feed_items(text, limit=refresh_config.feed_item_limit)[: refresh_config.items_per_feed]
    return [normalize_feed_item(item, source.name, source.category) for item in items]


def finalize_commit_group(activities: list[Activity], limit: int) -> list[Activity]:
    """Post-process the combined output of all commit feeds.

    Keeps the first activity for each id, sorts newest first and caps the group.

    Args:
        activities: Commit activities in source order
        limit: Maximum activities kept

    Returns:
        Deduplicated, sorted, capped list
    """
    seen = set()
    unique = []
    for activity in activities:
        if activity.id in seen:
            continue
        seen.add(activity.id)
        unique.append(activity)
    return sort_history(unique)[:limit]
