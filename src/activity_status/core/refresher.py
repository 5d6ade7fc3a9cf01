"""
Status cache refresh orchestrator.

A refresh snapshots the location, collects every source concurrently, merges the
new activities into the stored history and republishes the status view.

The store is not transactional. Two refreshes, or a refresh and a location update,
can interleave their read-modify-write cycles; the later full-history write wins.
History is read after the fetch phase so that a location update landing while
sources are being fetched is kept rather than overwritten.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from activity_status.config import Config, get_config
from activity_status.core.fanout import settle_all
from activity_status.core.fetcher import FeedFetcher
from activity_status.core.location import LocationStore
from activity_status.core.merger import merge
from activity_status.core.sources import (
    FeedSource,
    SourceKind,
    collect_source,
    finalize_commit_group,
)
from activity_status.core.status_view import build_status_view
from activity_status.logger import get_logger
from activity_status.models import Activity, StatusView
from activity_status.storage.repositories import StatusRepository
from activity_status.utils.dates import Clock, from_epoch_millis, utc_now

logger = get_logger(__name__)


@dataclass
class RefreshReport:
    """Outcome of the most recent refresh."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    candidates: int = 0
    appended: int = 0
    failed_sources: list[str] = field(default_factory=list)


class StatusRefresher:
    """Keeps the status view and history up to date."""

    def __init__(
        self,
        repository: StatusRepository,
        sources: list[FeedSource],
        fetcher: FeedFetcher,
        location_store: LocationStore,
        config: Optional[Config] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the refresher.

        Args:
            repository: Status repository
            sources: Sources to poll, in collection order
            fetcher: HTTP fetcher shared by all sources
            location_store: Source of the location snapshot
            config: Application configuration (global config when omitted)
            clock: Optional clock returning aware UTC datetimes
        """
        self.repository = repository
        self.sources = sorted(sources, key=lambda source: source.order)
        self.fetcher = fetcher
        self.location_store = location_store
        self.config = config or get_config()
        self.clock = clock or utc_now
        self.last_report: Optional[RefreshReport] = None

    def is_fresh(self, view: StatusView, now: Optional[datetime] = None) -> bool:
        """Whether a cached view is within the freshness window."""
        now = now or self.clock()
        age = now - from_epoch_millis(view.last_update)
        return age < timedelta(seconds=self.config.refresh.freshness_window_seconds)

    def get_status(self) -> StatusView:
        """Get the status view, refreshing it when missing or stale.

        Returns:
            StatusView
        """
        cached = self.repository.get_status_view()
        if cached is not None and self.is_fresh(cached):
            logger.debug("Serving cached status view")
            return cached

        logger.info("Status view missing or stale, refreshing")
        return self.refresh()

    def collect(self) -> tuple[list[Activity], list[str]]:
        """Collect candidates from every source concurrently.

        Returns:
            (candidates in source order, names of failed sources)
        """
        refresh_config = self.config.refresh
        tasks = [
            (
                source.name,
                lambda source=source: collect_source(
                    source, self.fetcher, refresh_config, self.config.fetcher
                ),
            )
            for source in self.sources
        ]
        results = settle_all(
            tasks,
            max_workers=refresh_config.max_workers,
            timeout=refresh_config.source_timeout_seconds,
        )

        grouped: dict[SourceKind, list[Activity]] = {kind: [] for kind in SourceKind}
        failed = []
        for source, result in zip(self.sources, results):
            if result.ok:
                grouped[source.kind].extend(result.value or [])
            else:
                failed.append(source.name)

        commits = finalize_commit_group(grouped[SourceKind.COMMITS], refresh_config.commit_activity_limit)
        candidates = commits + grouped[SourceKind.GITHUB_EVENTS] + grouped[SourceKind.RSS]
        return candidates, failed

    def refresh(self) -> StatusView:
        """Collect all sources, merge new activities and publish a new view.

        Returns:
            The newly written StatusView
        """
        refresh_config = self.config.refresh
        report = RefreshReport(started_at=self.clock())
        logger.info(f"Refreshing status from {len(self.sources)} sources")

        # Every activity added by this refresh gets the same location
        location = self.location_store.get()

        candidates, failed = self.collect()
        report.candidates = len(candidates)
        report.failed_sources = failed

        history = self.repository.get_history()
        result = merge(
            history,
            candidates,
            dedupe_within_batch=refresh_config.dedupe_within_batch,
            stamp=lambda activity: activity.with_location(location),
        )
        report.appended = result.appended_count

        # The view publishes whatever location is current now, which may be newer
        # than the snapshot the new activities were stamped with
        now = self.clock()
        view = build_status_view(
            result.history,
            self.location_store.get(),
            now,
            limit=refresh_config.status_activity_limit,
            services=self.config.services.entries,
        )

        self.repository.put_history(result.history)
        self.repository.put_status_view(view, ttl_seconds=refresh_config.status_ttl_seconds)

        report.finished_at = now
        self.last_report = report

        if failed:
            logger.warning(f"Sources failed this refresh: {', '.join(failed)}")
        logger.info(
            f"Refresh complete: {result.appended_count} new of {len(candidates)} candidates, "
            f"history size {len(result.history)}"
        )
        return view
