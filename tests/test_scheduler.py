from __future__ import annotations

from datetime import timedelta

import pytest

from pinbox_syncer.adapters.pinbox.models import SyncReport
from pinbox_syncer.core.time_utils import utc_now
from pinbox_syncer.services.scheduler import SYNC_JOB_ID, AutoSyncScheduler


class StubService:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0
        self.last_report: SyncReport | None = None

    async def run_sync(self) -> int:
        self.calls += 1
        if self.error is not None:
            raise self.error
        self.last_report = SyncReport(total=2, created=2)
        return 2


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        AutoSyncScheduler(StubService(), 0)


async def test_job_never_overlaps():
    scheduler = AutoSyncScheduler(StubService(), 15)
    await scheduler.start()
    try:
        job = scheduler._scheduler.get_job(SYNC_JOB_ID)
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval == timedelta(minutes=15)
        assert scheduler.is_running
        assert scheduler.get_next_run_time() > utc_now()
    finally:
        await scheduler.stop()

    assert not scheduler.is_running
    assert scheduler.get_next_run_time() is None


async def test_run_immediately_schedules_now():
    before = utc_now()
    scheduler = AutoSyncScheduler(StubService(), 60, run_immediately=True)
    await scheduler.start()
    try:
        assert scheduler.get_next_run_time() <= before + timedelta(minutes=1)
    finally:
        await scheduler.stop()


async def test_start_twice_is_noop():
    scheduler = AutoSyncScheduler(StubService(), 5)
    await scheduler.start()
    first = scheduler._scheduler
    await scheduler.start()
    assert scheduler._scheduler is first
    await scheduler.stop()


async def test_scheduled_pass_runs_service():
    service = StubService()
    await AutoSyncScheduler(service, 5)._run_sync()
    assert service.calls == 1


async def test_scheduled_pass_failure_is_contained():
    service = StubService(RuntimeError("network down"))
    await AutoSyncScheduler(service, 5)._run_sync()
    assert service.calls == 1
