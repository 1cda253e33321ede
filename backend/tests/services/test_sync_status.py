"""
Tests for the sync status tracker.
"""

from datetime import timedelta

from clipsync.db.base import utc_now
from clipsync.services.clip_sync import SyncOutcome
from clipsync.services.sync_runs import SyncRunSummary
from clipsync.services.sync_status import SyncStatusTracker


def _success(**counts) -> SyncOutcome:
    now = utc_now()
    return SyncOutcome(status=SyncOutcome.SUCCESS, started_at=now, finished_at=now, **counts)


def _failure() -> SyncOutcome:
    return SyncOutcome.failure(utc_now() - timedelta(seconds=2), RuntimeError("boom"))


def test_initial_snapshot():
    snapshot = SyncStatusTracker(scheduler="celery", interval_minutes=10).snapshot()

    assert snapshot["scheduler"] == "celery"
    assert snapshot["interval_minutes"] == 10
    assert snapshot["running"] is False
    assert snapshot["total_cycles"] == 0
    assert snapshot["last_outcome"] is None
    assert snapshot["last_success_at"] is None


def test_consecutive_failures_reset_on_success():
    tracker = SyncStatusTracker()

    tracker.record(_failure())
    tracker.record(_failure())
    assert tracker.consecutive_failures == 2

    success = _success(clips_inserted=3)
    tracker.record(success)

    assert tracker.consecutive_failures == 0
    assert tracker.total_failures == 2
    assert tracker.total_cycles == 3
    assert tracker.last_success_at == success.finished_at


def test_failure_keeps_last_success_time():
    tracker = SyncStatusTracker()
    success = _success()
    tracker.record(success)

    tracker.record(_failure())

    assert tracker.last_success_at == success.finished_at
    assert tracker.last_outcome.error_type == "RuntimeError"


def test_snapshot_serializes_last_outcome():
    tracker = SyncStatusTracker()
    tracker.record(_failure())
    tracker.record_skipped_tick()

    snapshot = tracker.snapshot()

    assert snapshot["skipped_ticks"] == 1
    assert snapshot["last_outcome"]["status"] == "failure"
    assert snapshot["last_outcome"]["error_message"] == "boom"
    assert snapshot["last_outcome"]["duration_seconds"] >= 2


def test_apply_history_replaces_counters_but_keeps_local_state():
    tracker = SyncStatusTracker(scheduler="celery")
    tracker.running = True
    tracker.record_skipped_tick()
    tracker.record(_success())
    last = _failure()

    tracker.apply_history(
        SyncRunSummary(
            total_cycles=7,
            total_failures=3,
            consecutive_failures=2,
            last_outcome=last,
            last_success_at=None,
        )
    )

    assert tracker.total_cycles == 7
    assert tracker.total_failures == 3
    assert tracker.consecutive_failures == 2
    assert tracker.last_outcome is last
    assert tracker.last_success_at is None
    assert tracker.skipped_ticks == 1
    assert tracker.running is True
