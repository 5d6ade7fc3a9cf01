"""
Periodic refresh scheduler.

Uses APScheduler to run the status refresh on an interval, independent of HTTP
traffic.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from activity_status.config import SchedulerConfig, get_config
from activity_status.core.refresher import StatusRefresher
from activity_status.logger import get_logger

logger = get_logger(__name__)

REFRESH_JOB_ID = "status_refresh"


@dataclass
class JobStatus:
    """Status of the scheduled refresh job."""

    job_id: str
    name: str
    next_run_time: Optional[datetime]
    is_active: bool
    trigger: str
    last_error: Optional[str] = None


@dataclass
class SchedulerStats:
    """Statistics for scheduler operations."""

    total_jobs: int = 0
    active_jobs: int = 0
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    last_execution_time: Optional[datetime] = None
    uptime_seconds: float = 0.0


class RefreshScheduler:
    """Runs StatusRefresher.refresh on a fixed interval."""

    def __init__(
        self,
        refresher: StatusRefresher,
        scheduler_config: Optional[SchedulerConfig] = None,
    ):
        """Initialize the scheduler.

        Args:
            refresher: Refresher whose refresh() is run by the job
            scheduler_config: Scheduler settings (global config when omitted)
        """
        self.refresher = refresher
        self.config = scheduler_config or get_config().scheduler
        self.interval_minutes = self.config.interval_minutes

        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=self.config.max_workers)},
            job_defaults={
                "coalesce": self.config.coalesce,
                "misfire_grace_time": self.config.misfire_grace_time,
                "max_instances": 1,
            },
            timezone=self.config.timezone,
        )

        self.stats = SchedulerStats()
        self.start_time: Optional[datetime] = None
        self._last_error: Optional[str] = None

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    def start(self) -> None:
        """Start the scheduler and register the refresh job."""
        if self.scheduler.running:
            logger.warning("Scheduler is already running")
            return

        job_kwargs = {}
        if self.config.run_on_start:
            job_kwargs["next_run_time"] = datetime.now(self.scheduler.timezone)

        self.scheduler.add_job(
            func=self._refresh_wrapper,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=REFRESH_JOB_ID,
            name="Refresh status",
            replace_existing=True,
            **job_kwargs,
        )
        self.scheduler.start()
        self.start_time = datetime.now()
        logger.info(f"Scheduler started, refreshing every {self.interval_minutes} minutes")

    def stop(self, wait: bool = True) -> None:
        """Stop the scheduler.

        Args:
            wait: Whether to wait for a running refresh to complete
        """
        if not self.scheduler.running:
            logger.warning("Scheduler is not running")
            return

        self.scheduler.shutdown(wait=wait)
        if self.start_time:
            self.stats.uptime_seconds = (datetime.now() - self.start_time).total_seconds()
        logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self.scheduler.running

    def trigger_now(self) -> bool:
        """Run the refresh job synchronously in the calling thread.

        Returns:
            True if the refresh succeeded
        """
        return self._refresh_wrapper()

    def get_job_status(self) -> Optional[JobStatus]:
        """Get status of the refresh job.

        Returns:
            JobStatus or None if the job is not registered
        """
        job = self.scheduler.get_job(REFRESH_JOB_ID)
        if job is None:
            return None
        next_run_time = getattr(job, "next_run_time", None)
        return JobStatus(
            job_id=job.id,
            name=job.name,
            next_run_time=next_run_time,
            is_active=next_run_time is not None,
            trigger=str(job.trigger),
            last_error=self._last_error,
        )

    def get_stats(self) -> SchedulerStats:
        """Get scheduler statistics."""
        jobs = self.scheduler.get_jobs()
        self.stats.total_jobs = len(jobs)
        self.stats.active_jobs = len([j for j in jobs if getattr(j, "next_run_time", None) is not None])

        if self.start_time and self.scheduler.running:
            self.stats.uptime_seconds = (datetime.now() - self.start_time).total_seconds()

        return self.stats

    def _refresh_wrapper(self) -> bool:
        """Run one refresh, recording the outcome instead of raising."""
        self.stats.total_executions += 1
        self.stats.last_execution_time = datetime.now()
        try:
            self.refresher.refresh()
        except Exception as e:
            logger.exception(f"Scheduled refresh failed: {e}")
            self.stats.failed_executions += 1
            self._last_error = f"{type(e).__name__}: {e}"
            return False

        self.stats.successful_executions += 1
        self._last_error = None
        return True

    def _on_job_executed(self, event: JobEvent) -> None:
        logger.debug(f"Job {event.job_id} executed")

    def _on_job_error(self, event: JobEvent) -> None:
        """Handle job error event.

        Args:
            event: Job event
        """
        exception = event.exception
        if exception:
            self._last_error = f"{type(exception).__name__}: {exception}"
            logger.error(f"Job {event.job_id} failed: {self._last_error}")


def create_scheduler(
    refresher: StatusRefresher,
    scheduler_config: Optional[SchedulerConfig] = None,
) -> RefreshScheduler:
    """Create a configured RefreshScheduler instance.

    Args:
        refresher: Refresher run by the job
        scheduler_config: Optional scheduler settings

    Returns:
        Configured RefreshScheduler instance
    """
    return RefreshScheduler(refresher, scheduler_config=scheduler_config)
