"""Periodic scan scheduling using APScheduler."""

from datetime import datetime, timezone
from typing import Optional

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .config.logging import get_logger
from .services.scanner import ScanOrchestrator

logger = get_logger(__name__)

SCAN_JOB_ID = "band_scan"


def create_scheduler() -> AsyncIOScheduler:
    """
    Create an AsyncIOScheduler configured for a single-flight scan job.

    Returns:
        Configured AsyncIOScheduler instance
    """
    job_defaults = {
        "coalesce": True,  # Collapse missed runs into one
        "max_instances": 1,  # Overlapping ticks are dropped, never stacked
        "misfire_grace_time": 30,
    }

    scheduler = AsyncIOScheduler(job_defaults=job_defaults, timezone="UTC")

    scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
    scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)
    scheduler.add_listener(
        job_skipped_listener, EVENT_JOB_MISSED | EVENT_JOB_MAX_INSTANCES
    )

    return scheduler


def job_executed_listener(event):
    """Log successful job executions."""
    logger.debug(
        "Job executed", job_id=event.job_id, scheduled=str(event.scheduled_run_time)
    )


def job_error_listener(event):
    """Log job execution errors."""
    logger.error(
        "Job crashed",
        job_id=event.job_id,
        error=str(event.exception),
        traceback=event.traceback,
    )


def job_skipped_listener(event):
    """Log runs dropped because the previous run is still going or was missed."""
    logger.warning(
        "Job run skipped",
        job_id=event.job_id,
        scheduled=str(event.scheduled_run_time),
    )


class PeriodicScan:
    """
    Runs ``orchestrator.run_cycle`` immediately and then every interval.

    The next run is only ever started once the previous one has finished.
    """

    def __init__(
        self,
        orchestrator: ScanOrchestrator,
        interval_seconds: Optional[int] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.orchestrator = orchestrator
        self.interval_seconds = (
            interval_seconds or orchestrator.settings.poll_interval_seconds
        )
        self.scheduler = scheduler or create_scheduler()

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        """Register the scan job and start the scheduler."""
        self.scheduler.add_job(
            self.orchestrator.run_cycle,
            trigger="interval",
            seconds=self.interval_seconds,
            id=SCAN_JOB_ID,
            name="Volatility band scan",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        if not self.scheduler.running:
            self.scheduler.start()

        logger.info(
            "Periodic scan started",
            interval_seconds=self.interval_seconds,
            symbols=len(self.orchestrator.symbols),
        )

    def stop(self) -> None:
        """Stop the timer; an in-flight cycle finishes on its own."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Periodic scan stopped")
