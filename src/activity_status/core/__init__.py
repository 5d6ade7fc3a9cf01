"""Core pipeline: parsing, normalization, merging, refresh and scheduling."""

from activity_status.core.factories import Services, create_fetcher, create_services, create_sources
from activity_status.core.fetcher import FeedFetcher, FetchResult, FetchStats
from activity_status.core.history import HistoryReader
from activity_status.core.location import LocationStore
from activity_status.core.merger import MergeResult, merge
from activity_status.core.refresher import RefreshReport, StatusRefresher
from activity_status.core.sources import FeedSource, SourceError, SourceKind

__all__ = [
    "FeedFetcher",
    "FeedSource",
    "FetchResult",
    "FetchStats",
    "HistoryReader",
    "LocationStore",
    "MergeResult",
    "RefreshReport",
    "Services",
    "SourceError",
    "SourceKind",
    "StatusRefresher",
    "create_fetcher",
    "create_services",
    "create_sources",
    "merge",
]
