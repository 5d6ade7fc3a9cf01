"""
Factory functions for creating core components with dependency injection.

Every component reads its defaults from the config system, and every collaborator
can be overridden, which is how tests swap in an in-memory store, a fixed clock or
an httpx mock transport.

Usage:
    from activity_status.core.factories import create_services

    services = create_services()
    view = services.refresher.get_status()
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from activity_status.config import Config, get_config
from activity_status.core.fetcher import FeedFetcher
from activity_status.core.geocoder import ReverseGeocoder
from activity_status.core.history import HistoryReader
from activity_status.core.location import LocationStore
from activity_status.core.refresher import StatusRefresher
from activity_status.core.sources import FeedSource, default_sources, load_sources_from_yaml
from activity_status.storage.kv_store import KeyValueStore, create_store
from activity_status.storage.repositories import StatusRepository
from activity_status.utils.dates import Clock


@dataclass
class Services:
    """Wired core components shared by the web app and the scheduler."""

    config: Config
    repository: StatusRepository
    location_store: LocationStore
    refresher: StatusRefresher
    history: HistoryReader


def create_fetcher(
    config: Optional[Config] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> FeedFetcher:
    """Create a configured FeedFetcher instance.

    Args:
        config: Optional configuration (global config when omitted)
        transport: Optional httpx transport

    Returns:
        Configured FeedFetcher instance
    """
    config = config or get_config()
    return FeedFetcher(
        timeout_seconds=config.fetcher.timeout_seconds,
        max_retries=config.fetcher.max_retries,
        user_agent=config.fetcher.user_agent,
        retry_delay_seconds=config.fetcher.retry_delay_seconds,
        transport=transport,
    )


def create_geocoder(fetcher: FeedFetcher, config: Optional[Config] = None) -> Optional[ReverseGeocoder]:
    """Create the reverse geocoder, or None when it is switched off.

    Args:
        fetcher: HTTP fetcher shared with the sources
        config: Optional configuration

    Returns:
        ReverseGeocoder or None
    """
    config = config or get_config()
    if not config.location.reverse_geocode:
        return None
    return ReverseGeocoder(fetcher, url=config.location.geocoder_url)


def create_sources(config: Optional[Config] = None) -> list[FeedSource]:
    """Load the configured source list, falling back to the built-in one.

    Args:
        config: Optional configuration

    Returns:
        Sources in collection order
    """
    config = config or get_config()
    if config.sources.file:
        return load_sources_from_yaml(config.sources.file)
    return default_sources(config.fetcher)


def create_services(
    config: Optional[Config] = None,
    store: Optional[KeyValueStore] = None,
    fetcher: Optional[FeedFetcher] = None,
    sources: Optional[list[FeedSource]] = None,
    clock: Optional[Clock] = None,
) -> Services:
    """Wire the repository, location store, refresher and history reader.

    One fetcher serves both the sources and the reverse geocoder.

    Args:
        config: Optional configuration (global config when omitted)
        store: Key-value store (configured backend when omitted)
        fetcher: HTTP fetcher
        sources: Sources to poll
        clock: Optional clock returning aware UTC datetimes

    Returns:
        Services
    """
    config = config or get_config()
    store = store if store is not None else create_store(clock=clock, store_config=config.store)
    repository = StatusRepository(store)
    fetcher = fetcher or create_fetcher(config)

    location_store = LocationStore(
        repository,
        location_config=config.location,
        refresh_config=config.refresh,
        services_config=config.services,
        clock=clock,
        geocoder=create_geocoder(fetcher, config),
    )
    refresher = StatusRefresher(
        repository,
        sources=sources if sources is not None else create_sources(config),
        fetcher=fetcher,
        location_store=location_store,
        config=config,
        clock=clock,
    )

    return Services(
        config=config,
        repository=repository,
        location_store=location_store,
        refresher=refresher,
        history=HistoryReader(repository),
    )
