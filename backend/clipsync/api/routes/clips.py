"""
Clip status API endpoints.

This module exposes stored clips with their processing status, lets the
front end mark clips processed, and reports the health of the sync
scheduler.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from clipsync.core.config import settings
from clipsync.core.exceptions import StoreError, ValidationError
from clipsync.core.logging import get_logger
from clipsync.db.deps import ClipStoreDep, SyncTrackerDep
from clipsync.schemas.clips import (
    ClipWithStatus,
    ProcessClipsRequest,
    ProcessClipsResponse,
    SyncStatusResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["Clips"])


@router.get(
    "/clips",
    response_model=List[ClipWithStatus],
    summary="List clips with processing status",
    responses={500: {"description": "Clip store error"}},
)
async def list_clips(store: ClipStoreDep):
    """All stored clips, newest first, each with ``is_processed`` and article id."""
    try:
        return await store.list_clips_with_status()
    except StoreError as e:
        logger.error("fetch_clips_failed", error=str(e), cause=repr(e.__cause__))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch clips",
        )


@router.post(
    "/process-clips",
    response_model=ProcessClipsResponse,
    summary="Mark clips as processed",
    responses={
        400: {"description": "Blank clip identifier"},
        500: {"description": "Clip store error"},
    },
)
async def process_clips(request: ProcessClipsRequest, store: ClipStoreDep):
    """
    Mark each clip processed with the placeholder knowledge article id.

    Every id is checked before anything is written, so a blank id rejects
    the whole batch. Clips are then handled in order. A store failure stops
    the batch; clips marked before the failure stay marked.
    """
    blank = [i for i, clip_id in enumerate(request.clip_ids) if not clip_id.strip()]
    if blank:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"clipIds must be non-empty strings (blank at positions {blank})",
        )

    article_id = settings.MOCK_KNOWLEDGE_ARTICLE_ID
    processed = 0

    try:
        for clip_id in request.clip_ids:
            await store.mark_processed(clip_id, article_id)
            processed += 1
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except StoreError as e:
        logger.error(
            "process_clips_failed",
            error=str(e),
            cause=repr(e.__cause__),
            processed_before_failure=processed,
            batch_size=len(request.clip_ids),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process clips",
        )

    logger.info("clips_processed", count=processed)
    return ProcessClipsResponse(success=True)


@router.get(
    "/sync-status",
    response_model=SyncStatusResponse,
    summary="Clip sync scheduler health",
)
async def sync_status(tracker: SyncTrackerDep):
    """Last cycle outcome plus cycle, failure and skipped-tick counters."""
    return tracker.snapshot()
