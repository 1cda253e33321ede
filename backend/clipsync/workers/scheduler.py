"""
In-process clip sync scheduler.

Runs an APScheduler ``AsyncIOScheduler`` on the same event loop as the API.
Ticks follow a cron trigger, so every 5 minutes means :00, :05, :10, ...
exactly like the ``*/5`` Celery beat entry used in Celery mode. Each tick
runs one supervised sync cycle as a job.

Overlap:
    With ``allow_overlap=False`` (default) the job has ``max_instances=1``:
    a tick that finds a cycle still running is dropped by APScheduler and
    counted as a skipped tick. With ``allow_overlap=True`` up to
    ``max_concurrent_cycles`` cycles may run at once; this is safe only
    because clip insertion is insert-if-absent.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional, Set

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, JobSubmissionEvent
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from clipsync.core.logging import get_logger
from clipsync.services.clip_sync import ClipSyncService, SyncOutcome, run_supervised_cycle
from clipsync.services.sync_runs import SyncRunStore
from clipsync.services.sync_status import SyncStatusTracker

logger = get_logger(__name__)

SYNC_JOB_ID = "sync-on-the-fly-clips"


def build_trigger(interval_minutes: int) -> BaseTrigger:
    """
    Trigger firing on wall-clock multiples of ``interval_minutes`` (UTC).

    Intervals that do not fit a cron field fall back to a plain interval
    trigger.
    """
    if interval_minutes < 1:
        raise ValueError("interval_minutes must be at least 1")
    if interval_minutes < 60:
        return CronTrigger(minute=f"*/{interval_minutes}", timezone=timezone.utc)
    if interval_minutes % 60 == 0 and interval_minutes // 60 < 24:
        return CronTrigger(hour=f"*/{interval_minutes // 60}", minute=0, timezone=timezone.utc)
    return IntervalTrigger(minutes=interval_minutes, timezone=timezone.utc)


class SyncScheduler:
    """Supervised fixed-interval trigger for sync cycles."""

    def __init__(
        self,
        service: ClipSyncService,
        tracker: SyncStatusTracker,
        interval_minutes: int = 5,
        allow_overlap: bool = False,
        run_on_startup: bool = False,
        max_concurrent_cycles: int = 3,
        run_store: Optional[SyncRunStore] = None,
    ):
        self.service = service
        self.tracker = tracker
        self.trigger = build_trigger(interval_minutes)
        self.allow_overlap = allow_overlap
        self.run_on_startup = run_on_startup
        self.max_instances = max(max_concurrent_cycles, 2) if allow_overlap else 1
        self.run_store = run_store
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._job: Optional[Job] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def job(self) -> Optional[Job]:
        return self._job

    @property
    def next_run_time(self) -> Optional[datetime]:
        return self._job.next_run_time if self._job is not None else None

    async def _run_cycle(self) -> SyncOutcome:
        task = asyncio.current_task()
        self._in_flight.add(task)
        try:
            logger.info("polling_for_new_clips")
            return await run_supervised_cycle(self.service, self.tracker, self.run_store)
        finally:
            self._in_flight.discard(task)

    def _on_max_instances(self, event: JobSubmissionEvent) -> None:
        self.tracker.record_skipped_tick()
        logger.warning(
            "sync_tick_skipped",
            reason="cycle_in_flight",
            in_flight=self.in_flight,
            scheduled_for=event.scheduled_run_times[0].isoformat() if event.scheduled_run_times else None,
        )

    def start(self) -> None:
        """Start the scheduler on the running event loop."""
        if self.running:
            return

        self._scheduler = AsyncIOScheduler(
            event_loop=asyncio.get_running_loop(),
            timezone=timezone.utc,
        )
        self._scheduler.add_listener(self._on_max_instances, EVENT_JOB_MAX_INSTANCES)
        self._scheduler.start()

        job_options = {}
        if self.run_on_startup:
            job_options["next_run_time"] = datetime.now(timezone.utc)
        self._job = self._scheduler.add_job(
            self._run_cycle,
            trigger=self.trigger,
            id=SYNC_JOB_ID,
            replace_existing=True,
            max_instances=self.max_instances,
            coalesce=True,
            misfire_grace_time=60,
            **job_options,
        )
        self.tracker.running = True

        logger.info(
            "sync_scheduler_started",
            trigger=str(self.trigger),
            max_instances=self.max_instances,
            next_run_time=self.next_run_time.isoformat() if self.next_run_time else None,
        )

    def run_now(self) -> None:
        """
        Ask the scheduler to run a cycle immediately.

        The overlap policy still applies: while a cycle is running and
        overlap is off, the request is dropped and counted as skipped.
        """
        if self._job is None:
            raise RuntimeError("Scheduler is not started")
        self._job.modify(next_run_time=datetime.now(timezone.utc))

    async def stop(self) -> None:
        """Shut the scheduler down and cancel any cycle still in flight."""
        if self.running:
            self._scheduler.shutdown(wait=False)
            # AsyncIOScheduler runs shutdown on its loop
            await asyncio.sleep(0)

        tasks = list(self._in_flight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._scheduler = None
        self._job = None
        self.tracker.running = False
        logger.info("sync_scheduler_stopped", cancelled=len(tasks))
