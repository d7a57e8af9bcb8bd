"""Background scheduler for periodic sync passes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pinbox_syncer.core.time_utils import utc_now

if TYPE_CHECKING:
    from pinbox_syncer.adapters.pinbox.sync.service import PinboxSyncService

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "pinbox_sync"


class AutoSyncScheduler:
    """Runs ``PinboxSyncService.run_sync`` every ``interval_minutes``.

    The job has ``max_instances=1``: a tick that fires while the previous pass
    is still running is skipped rather than starting a second pass.
    """

    def __init__(
        self,
        service: PinboxSyncService,
        interval_minutes: int,
        *,
        run_immediately: bool = False,
    ) -> None:
        """Initialize scheduler.

        Args:
            service: Sync service whose pass is scheduled
            interval_minutes: Minutes between passes
            run_immediately: Also run a pass as soon as the scheduler starts
        """
        if interval_minutes < 1:
            msg = "interval_minutes must be at least 1"
            raise ValueError(msg)
        self.service = service
        self.interval_minutes = interval_minutes
        self.run_immediately = run_immediately
        self._scheduler: AsyncIOScheduler | None = None
        self._started = False

    async def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        if self._started:
            logger.warning("scheduler_already_started")
            return

        job_options: dict[str, Any] = {}
        if self.run_immediately:
            job_options["next_run_time"] = utc_now()

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run_sync,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=SYNC_JOB_ID,
            name="Pinbox Bookmark Sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_options,
        )
        self._scheduler.start()
        self._started = True
        logger.info(
            "scheduler_started",
            extra={"job_id": SYNC_JOB_ID, "interval_minutes": self.interval_minutes},
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self._scheduler and self._started:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            self._started = False
            logger.info("scheduler_stopped")

    async def _run_sync(self) -> None:
        """Execute one scheduled pass; failures are logged and the schedule continues."""
        correlation_id = f"scheduled_{utc_now().strftime('%Y%m%d_%H%M%S')}"
        logger.info("scheduled_sync_starting", extra={"cid": correlation_id})
        try:
            total = await self.service.run_sync()
        except Exception as exc:
            logger.exception(
                "scheduled_sync_failed",
                extra={"cid": correlation_id, "error": str(exc)},
            )
            return

        report = self.service.last_report
        logger.info(
            "scheduled_sync_complete",
            extra={
                "cid": correlation_id,
                "total": total,
                "summary": report.summary() if report else None,
            },
        )

    def get_next_run_time(self) -> datetime | None:
        """Next scheduled pass, or None when the scheduler is not running."""
        if not self._scheduler or not self._started:
            return None
        job = self._scheduler.get_job(SYNC_JOB_ID)
        return job.next_run_time if job else None

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._started and self._scheduler is not None
