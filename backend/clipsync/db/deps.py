"""
Dependencies for FastAPI Routes

Routes declare what they need (a clip store, the sync tracker, the shared
HTTP client) and FastAPI resolves it from ``app.state``, where the lifespan
put the handles it built at startup.

Tests replace any of these with ``app.dependency_overrides``.
"""

from typing import Annotated

import httpx
from fastapi import Depends, Request

from clipsync.core.exceptions import StoreError
from clipsync.core.logging import get_logger
from clipsync.db.session import Database
from clipsync.services.clip_store import ClipStore
from clipsync.services.crm_token_store import CrmTokenStore
from clipsync.services.sync_runs import SyncRunStore
from clipsync.services.sync_status import SyncStatusTracker

logger = get_logger(__name__)


def get_database(request: Request) -> Database:
    """The Database handle created in the lifespan."""
    return request.app.state.database


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The shared outbound HTTP client created in the lifespan."""
    return request.app.state.http_client


def get_sync_tracker(request: Request) -> SyncStatusTracker:
    return request.app.state.sync_tracker


def get_clip_store(database: Database = Depends(get_database)) -> ClipStore:
    return ClipStore(database)


def get_crm_token_store(database: Database = Depends(get_database)) -> CrmTokenStore:
    return CrmTokenStore(database)


def get_sync_run_store(database: Database = Depends(get_database)) -> SyncRunStore:
    return SyncRunStore(database)


async def get_current_sync_status(
    tracker: SyncStatusTracker = Depends(get_sync_tracker),
    runs: SyncRunStore = Depends(get_sync_run_store),
) -> SyncStatusTracker:
    """
    The sync tracker, brought up to date when cycles run in Celery.

    Celery workers can only write outcomes to ``sync_runs``. The in-process
    scheduler also updates the tracker directly.
    """
    if tracker.scheduler == "celery":
        try:
            tracker.apply_history(await runs.summary())
        except StoreError as e:
            logger.error("sync_history_unavailable", error=str(e))
    return tracker


ClipStoreDep = Annotated[ClipStore, Depends(get_clip_store)]
CrmTokenStoreDep = Annotated[CrmTokenStore, Depends(get_crm_token_store)]
SyncTrackerDep = Annotated[SyncStatusTracker, Depends(get_current_sync_status)]
HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]
