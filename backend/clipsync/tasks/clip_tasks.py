"""
Celery tasks for clip synchronization.

This module contains the beat-driven sync task used in the Celery
deployment mode. It runs exactly the same cycle as the in-process
scheduler and, like it, never lets a cycle error escape.
"""

import asyncio
import logging

import httpx

from clipsync.core.config import settings
from clipsync.db.session import Database
from clipsync.services.clip_sync import ClipSyncService, run_supervised_cycle
from clipsync.services.sync_runs import SyncRunStore
from clipsync.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ========================================
# Helper Functions
# ========================================

def run_async(coro):
    """
    Run async coroutine in Celery task context.

    Worker processes have no running loop, so each task gets a fresh one.
    """
    return asyncio.run(coro)


async def _sync_clips() -> dict:
    # Each task run builds and releases its own pool and HTTP client:
    # a worker process has no lifespan to own them. Outcomes go to sync_runs
    # so the API can report them.
    database = Database.from_settings(settings)
    try:
        async with httpx.AsyncClient(timeout=settings.ZOOM_REQUEST_TIMEOUT) as http_client:
            service = ClipSyncService.from_settings(http_client, database, settings)
            outcome = await run_supervised_cycle(
                service, run_store=SyncRunStore(database, settings)
            )
    finally:
        await database.dispose()
    return outcome.to_dict()


# ========================================
# Main Tasks
# ========================================

@celery_app.task(name='clips.sync_on_the_fly_clips', bind=True)
def sync_on_the_fly_clips(self) -> dict:
    """
    Fetch all Zoom clips and store the on-the-fly ones.

    No retries: a failed cycle is recorded in the task result and the next
    beat tick fetches everything again.

    Returns:
        The cycle outcome:
        {
            'status': 'success' | 'failure',
            'started_at': str,
            'finished_at': str,
            'duration_seconds': float,
            'clips_fetched': int,
            'clips_on_the_fly': int,
            'clips_inserted': int,
            'error_type': Optional[str],
            'error_message': Optional[str]
        }
    """
    logger.info("Polling for new clips...")
    result = run_async(_sync_clips())

    if result['status'] == 'success':
        logger.info(f"Stored {result['clips_inserted']} new \"on the fly\" clips")
    else:
        logger.error(f"Clip sync failed: {result['error_type']}: {result['error_message']}")

    return result
