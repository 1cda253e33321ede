"""
Tests for the persisted sync run history.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from clipsync.core.exceptions import StoreError
from clipsync.db.base import utc_now
from clipsync.services.clip_sync import SyncOutcome
from clipsync.services.sync_runs import SyncRunStore


def _success(started_at=None, **counts) -> SyncOutcome:
    started_at = started_at or utc_now()
    return SyncOutcome(
        status=SyncOutcome.SUCCESS,
        started_at=started_at,
        finished_at=started_at + timedelta(seconds=1),
        **counts,
    )


def _failure(started_at=None) -> SyncOutcome:
    return SyncOutcome.failure(started_at or utc_now(), RuntimeError("Zoom unreachable"))


@pytest.fixture
def runs(database) -> SyncRunStore:
    return SyncRunStore(database)


@pytest.mark.asyncio
async def test_empty_history(runs: SyncRunStore):
    summary = await runs.summary()

    assert summary.total_cycles == 0
    assert summary.total_failures == 0
    assert summary.consecutive_failures == 0
    assert summary.last_outcome is None
    assert summary.last_success_at is None


@pytest.mark.asyncio
async def test_summary_counts_failures_since_last_success(runs: SyncRunStore):
    await runs.record(_failure())
    await runs.record(_success(clips_fetched=5, clips_on_the_fly=2, clips_inserted=2))
    await runs.record(_failure())
    await runs.record(_failure())

    summary = await runs.summary()

    assert summary.total_cycles == 4
    assert summary.total_failures == 3
    assert summary.consecutive_failures == 2
    assert summary.last_outcome.status == SyncOutcome.FAILURE
    assert summary.last_outcome.error_type == "RuntimeError"
    assert summary.last_outcome.error_message == "Zoom unreachable"
    assert summary.last_success_at is not None


@pytest.mark.asyncio
async def test_summary_without_any_success(runs: SyncRunStore):
    await runs.record(_failure())
    await runs.record(_failure())

    summary = await runs.summary()

    assert summary.consecutive_failures == 2
    assert summary.last_success_at is None


@pytest.mark.asyncio
async def test_last_outcome_keeps_counts(runs: SyncRunStore):
    await runs.record(_success(clips_fetched=7, clips_on_the_fly=3, clips_inserted=1))

    last = (await runs.summary()).last_outcome

    assert last.succeeded
    assert (last.clips_fetched, last.clips_on_the_fly, last.clips_inserted) == (7, 3, 1)
    assert last.duration_seconds == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_record_prunes_rows_past_retention(runs: SyncRunStore):
    await runs.record(_success(started_at=utc_now() - timedelta(days=45)))
    await runs.record(_success())

    summary = await runs.summary()

    assert summary.total_cycles == 1


@pytest.mark.asyncio
async def test_record_database_error_raises_store_error(runs: SyncRunStore):
    with patch(
        "sqlalchemy.ext.asyncio.AsyncSession.commit",
        side_effect=OperationalError("INSERT", {}, Exception("database is locked")),
    ):
        with pytest.raises(StoreError):
            await runs.record(_success())
