"""
Scheduler manager for the Flask application.

Keeps the refresh scheduler in ``app.extensions`` instead of a module global.
"""

from typing import Optional

from flask import Flask, current_app

from activity_status.core.refresher import StatusRefresher
from activity_status.core.scheduler import RefreshScheduler, create_scheduler
from activity_status.logger import get_logger

logger = get_logger(__name__)

EXTENSION_KEY = "scheduler_manager"


class SchedulerManager:
    """Manager for the refresh scheduler within a Flask application."""

    def __init__(self, app: Optional[Flask] = None):
        """Initialize scheduler manager.

        Args:
            app: Optional Flask application instance
        """
        self._scheduler: Optional[RefreshScheduler] = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Register the manager on a Flask application.

        Args:
            app: Flask application instance
        """
        app.extensions[EXTENSION_KEY] = self

    def get_scheduler(self) -> Optional[RefreshScheduler]:
        """Get the current scheduler instance."""
        return self._scheduler

    def initialize_scheduler(self, refresher: StatusRefresher) -> RefreshScheduler:
        """Create the scheduler for a refresher.

        Args:
            refresher: Refresher run by the scheduled job

        Returns:
            RefreshScheduler instance
        """
        if self._scheduler is not None:
            logger.warning("Scheduler already initialized")
            return self._scheduler

        self._scheduler = create_scheduler(refresher)
        logger.info("Scheduler initialized")
        return self._scheduler

    def start_scheduler(self) -> bool:
        """Start the scheduler if not already running.

        Returns:
            True if started successfully or already running
        """
        if self._scheduler is None:
            logger.error("Cannot start scheduler: not initialized")
            return False

        if self._scheduler.is_running():
            logger.debug("Scheduler is already running")
            return True

        self._scheduler.start()
        return True

    def stop_scheduler(self, wait: bool = True) -> bool:
        """Stop the scheduler if running.

        Args:
            wait: Whether to wait for a running refresh to complete

        Returns:
            True once the scheduler is not running
        """
        if self._scheduler is None or not self._scheduler.is_running():
            return True

        self._scheduler.stop(wait=wait)
        return True

    def get_stats(self) -> dict:
        """Get scheduler statistics.

        Returns:
            Dictionary with scheduler statistics
        """
        if self._scheduler is None:
            return {
                "initialized": False,
                "running": False,
                "total_executions": 0,
            }

        stats = self._scheduler.get_stats()
        job = self._scheduler.get_job_status()
        return {
            "initialized": True,
            "running": self._scheduler.is_running(),
            "total_executions": stats.total_executions,
            "successful_executions": stats.successful_executions,
            "failed_executions": stats.failed_executions,
            "uptime_seconds": stats.uptime_seconds,
            "next_run_time": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "last_error": job.last_error if job else None,
        }


def get_scheduler_manager(app: Optional[Flask] = None) -> SchedulerManager:
    """Get the scheduler manager of an application (current app by default)."""
    app = app or current_app
    manager = app.extensions.get(EXTENSION_KEY)
    if manager is None:
        manager = SchedulerManager(app)
    return manager
