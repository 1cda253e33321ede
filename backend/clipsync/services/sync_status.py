"""
In-memory record of sync cycle outcomes.

The scheduler records every cycle here and ``GET /sync-status`` reads it,
so operators can tell a healthy sync from one that has been failing
silently (for example on a runaway pagination cursor).
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from clipsync.core.logging import get_logger

if TYPE_CHECKING:
    from clipsync.services.clip_sync import SyncOutcome
    from clipsync.services.sync_runs import SyncRunSummary

logger = get_logger(__name__)


class SyncStatusTracker:
    """Counters and last outcome of the sync scheduler."""

    def __init__(self, scheduler: str = "inprocess", interval_minutes: int = 5):
        self.scheduler = scheduler
        self.interval_minutes = interval_minutes
        self.running = False
        self.total_cycles = 0
        self.total_failures = 0
        self.consecutive_failures = 0
        self.skipped_ticks = 0
        self.last_outcome: Optional["SyncOutcome"] = None
        self.last_success_at: Optional[datetime] = None

    def record(self, outcome: "SyncOutcome") -> None:
        self.total_cycles += 1
        self.last_outcome = outcome

        if outcome.succeeded:
            self.consecutive_failures = 0
            self.last_success_at = outcome.finished_at
        else:
            self.total_failures += 1
            self.consecutive_failures += 1
            if self.consecutive_failures > 1:
                logger.warning(
                    "sync_failing_repeatedly",
                    consecutive_failures=self.consecutive_failures,
                    error_type=outcome.error_type,
                )

    def record_skipped_tick(self) -> None:
        self.skipped_ticks += 1

    def apply_history(self, summary: "SyncRunSummary") -> None:
        """
        Replace the cycle counters with totals read from ``sync_runs``.

        Used when cycles run in a Celery worker and this process never sees
        them directly. ``running`` and ``skipped_ticks`` are left alone.
        """
        self.total_cycles = summary.total_cycles
        self.total_failures = summary.total_failures
        self.consecutive_failures = summary.consecutive_failures
        self.last_outcome = summary.last_outcome
        self.last_success_at = summary.last_success_at

    def snapshot(self) -> Dict[str, Any]:
        return {
            "scheduler": self.scheduler,
            "interval_minutes": self.interval_minutes,
            "running": self.running,
            "total_cycles": self.total_cycles,
            "total_failures": self.total_failures,
            "consecutive_failures": self.consecutive_failures,
            "skipped_ticks": self.skipped_ticks,
            "last_outcome": self.last_outcome.to_dict() if self.last_outcome else None,
            "last_success_at": self.last_success_at,
        }
