"""
Tests for the in-process sync scheduler.

The sync service is replaced with a stub whose cycles can be held open, so
overlap behaviour is deterministic. Schedulers run with an hourly trigger
and are driven through ``run_now`` so no cron tick fires mid-test.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from clipsync.core.exceptions import FetchError
from clipsync.db.base import utc_now
from clipsync.services.clip_sync import SyncOutcome
from clipsync.workers.scheduler import SYNC_JOB_ID, SyncScheduler, build_trigger


class StubSyncService:
    """Counts cycles; each cycle waits on ``release`` when ``hold`` is set."""

    def __init__(self, hold: bool = False, error: Exception = None):
        self.calls = 0
        self.completed = 0
        self.hold = hold
        self.error = error
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    async def run_cycle(self) -> SyncOutcome:
        self.calls += 1
        self.started.set()
        if self.hold:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        self.completed += 1
        now = utc_now()
        return SyncOutcome(status=SyncOutcome.SUCCESS, started_at=now, finished_at=now)


async def eventually(condition, timeout: float = 2.0) -> None:
    async def poll():
        while not condition():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
async def start_scheduler(tracker):
    started = []

    def _start(service, **kwargs) -> SyncScheduler:
        kwargs.setdefault("interval_minutes", 60)
        scheduler = SyncScheduler(service, tracker, **kwargs)
        scheduler.start()
        started.append(scheduler)
        return scheduler

    yield _start

    for scheduler in started:
        await scheduler.stop()


# ========================================
# Triggers
# ========================================

@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2026, 1, 1, 12, 0, 30, tzinfo=timezone.utc), datetime(2026, 1, 1, 12, 5, tzinfo=timezone.utc)),
        (datetime(2026, 1, 1, 12, 4, 59, tzinfo=timezone.utc), datetime(2026, 1, 1, 12, 5, tzinfo=timezone.utc)),
        (datetime(2026, 1, 1, 12, 57, tzinfo=timezone.utc), datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)),
    ],
)
def test_five_minute_trigger_fires_on_wall_clock_boundaries(now, expected):
    trigger = build_trigger(5)

    assert isinstance(trigger, CronTrigger)
    assert trigger.get_next_fire_time(None, now) == expected


def test_hourly_trigger_fires_on_the_hour():
    trigger = build_trigger(60)
    now = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)

    assert trigger.get_next_fire_time(None, now) == datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)


def test_irregular_interval_falls_back_to_interval_trigger():
    assert isinstance(build_trigger(90), IntervalTrigger)


def test_interval_must_be_positive(tracker):
    with pytest.raises(ValueError):
        SyncScheduler(StubSyncService(), tracker, interval_minutes=0)


def test_overlap_policy_sets_max_instances(tracker):
    assert SyncScheduler(StubSyncService(), tracker).max_instances == 1
    assert SyncScheduler(
        StubSyncService(), tracker, allow_overlap=True, max_concurrent_cycles=4
    ).max_instances == 4


# ========================================
# Lifecycle
# ========================================

@pytest.mark.asyncio
async def test_start_registers_single_job(tracker, start_scheduler):
    scheduler = start_scheduler(StubSyncService())

    assert scheduler.running is True
    assert tracker.running is True
    assert scheduler.job.id == SYNC_JOB_ID
    assert scheduler.job.max_instances == 1
    assert scheduler.next_run_time > datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_run_now_runs_one_cycle_and_records_it(tracker, start_scheduler):
    service = StubSyncService()
    scheduler = start_scheduler(service)

    scheduler.run_now()
    await eventually(lambda: tracker.total_cycles == 1)

    assert service.calls == 1
    assert tracker.last_outcome.succeeded
    assert scheduler.in_flight == 0


def test_run_now_requires_started_scheduler(tracker):
    with pytest.raises(RuntimeError):
        SyncScheduler(StubSyncService(), tracker).run_now()


@pytest.mark.asyncio
async def test_tick_is_skipped_while_cycle_in_flight(tracker, start_scheduler):
    service = StubSyncService(hold=True)
    scheduler = start_scheduler(service)

    scheduler.run_now()
    await asyncio.wait_for(service.started.wait(), timeout=2)
    scheduler.run_now()
    await eventually(lambda: tracker.skipped_ticks == 1)

    assert service.calls == 1

    service.release.set()
    await eventually(lambda: tracker.total_cycles == 1)
    assert service.calls == 1


@pytest.mark.asyncio
async def test_overlap_allowed_starts_concurrent_cycles(tracker, start_scheduler):
    service = StubSyncService(hold=True)
    scheduler = start_scheduler(service, allow_overlap=True)

    scheduler.run_now()
    await asyncio.wait_for(service.started.wait(), timeout=2)
    scheduler.run_now()
    await eventually(lambda: service.calls == 2)

    assert scheduler.in_flight == 2

    service.release.set()
    await eventually(lambda: tracker.total_cycles == 2)
    assert tracker.skipped_ticks == 0


@pytest.mark.asyncio
async def test_failed_cycle_is_recorded_and_next_tick_runs(tracker, start_scheduler):
    service = StubSyncService(error=FetchError("Clip page request returned HTTP 502"))
    scheduler = start_scheduler(service)

    scheduler.run_now()
    await eventually(lambda: tracker.total_cycles == 1)
    assert tracker.last_outcome.status == SyncOutcome.FAILURE
    assert tracker.consecutive_failures == 1

    service.error = None
    scheduler.run_now()
    await eventually(lambda: tracker.total_cycles == 2)
    assert tracker.last_outcome.succeeded
    assert tracker.total_failures == 1
    assert tracker.consecutive_failures == 0


@pytest.mark.asyncio
async def test_cycle_outcomes_are_persisted(tracker, start_scheduler):
    run_store = MagicMock()
    run_store.record = AsyncMock()
    scheduler = start_scheduler(StubSyncService(), run_store=run_store)

    scheduler.run_now()
    await eventually(lambda: run_store.record.await_count == 1)

    outcome = run_store.record.await_args.args[0]
    assert outcome.succeeded
    assert tracker.last_outcome == outcome


@pytest.mark.asyncio
async def test_run_on_startup_triggers_immediately(start_scheduler):
    service = StubSyncService()
    start_scheduler(service, run_on_startup=True)

    await asyncio.wait_for(service.started.wait(), timeout=2)

    assert service.calls == 1


@pytest.mark.asyncio
async def test_stop_cancels_cycle_in_flight(tracker, start_scheduler):
    service = StubSyncService(hold=True)
    scheduler = start_scheduler(service)

    scheduler.run_now()
    await asyncio.wait_for(service.started.wait(), timeout=2)

    await scheduler.stop()

    assert service.completed == 0
    assert tracker.total_cycles == 0
    assert tracker.running is False
    assert scheduler.running is False
    assert scheduler.in_flight == 0
