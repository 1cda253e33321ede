"""
Durable history of sync cycle outcomes.

Every cycle, whether run by the in-process scheduler or a Celery worker,
appends one ``sync_runs`` row. The API rebuilds the ``/sync-status``
counters from these rows when cycles run in another process.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from clipsync.core.config import Settings, settings as default_settings
from clipsync.core.exceptions import StoreError
from clipsync.core.logging import get_logger
from clipsync.db.session import Database
from clipsync.models.sync_run import SyncRun
from clipsync.services.clip_sync import SyncOutcome

logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncRunSummary:
    total_cycles: int = 0
    total_failures: int = 0
    consecutive_failures: int = 0
    last_outcome: Optional[SyncOutcome] = None
    last_success_at: Optional[datetime] = None


def _to_outcome(run: SyncRun) -> SyncOutcome:
    return SyncOutcome(
        status=run.status,
        started_at=run.started_at,
        finished_at=run.finished_at,
        clips_fetched=run.clips_fetched,
        clips_on_the_fly=run.clips_on_the_fly,
        clips_inserted=run.clips_inserted,
        error_type=run.error_type,
        error_message=run.error_message,
    )


class SyncRunStore:
    """Append and summarize sync cycle outcomes."""

    def __init__(self, database: Database, config: Optional[Settings] = None):
        self.database = database
        self.retention = timedelta(days=(config or default_settings).SYNC_RUN_RETENTION_DAYS)

    async def record(self, outcome: SyncOutcome) -> None:
        """
        Append ``outcome`` and prune rows past the retention window.

        Raises:
            StoreError: If the database operation fails
        """
        run = SyncRun(
            status=outcome.status,
            started_at=outcome.started_at,
            finished_at=outcome.finished_at,
            clips_fetched=outcome.clips_fetched,
            clips_on_the_fly=outcome.clips_on_the_fly,
            clips_inserted=outcome.clips_inserted,
            error_type=outcome.error_type,
            error_message=outcome.error_message,
        )
        cutoff = outcome.started_at - self.retention

        try:
            async with self.database.session() as session:
                session.add(run)
                await session.execute(delete(SyncRun).where(SyncRun.started_at < cutoff))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("sync_run_record_failed", error=str(e))
            raise StoreError("Failed to record sync run") from e

    async def summary(self) -> SyncRunSummary:
        """Counters and last outcome over the retained history."""
        try:
            async with self.database.session() as session:
                total = await session.scalar(select(func.count()).select_from(SyncRun))
                failures = await session.scalar(
                    select(func.count()).select_from(SyncRun).where(SyncRun.status == SyncOutcome.FAILURE)
                )
                last = await session.scalar(
                    select(SyncRun).order_by(SyncRun.id.desc()).limit(1)
                )
                last_success = await session.scalar(
                    select(SyncRun)
                    .where(SyncRun.status == SyncOutcome.SUCCESS)
                    .order_by(SyncRun.id.desc())
                    .limit(1)
                )
                consecutive_stmt = (
                    select(func.count())
                    .select_from(SyncRun)
                    .where(SyncRun.status == SyncOutcome.FAILURE)
                )
                if last_success is not None:
                    consecutive_stmt = consecutive_stmt.where(SyncRun.id > last_success.id)
                consecutive = await session.scalar(consecutive_stmt)
        except SQLAlchemyError as e:
            raise StoreError("Failed to load sync runs") from e

        return SyncRunSummary(
            total_cycles=total or 0,
            total_failures=failures or 0,
            consecutive_failures=consecutive or 0,
            last_outcome=_to_outcome(last) if last is not None else None,
            last_success_at=last_success.finished_at if last_success is not None else None,
        )
