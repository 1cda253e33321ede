"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from clipsync.schemas.clips import (
    ClipWithStatus,
    ProcessClipsRequest,
    ProcessClipsResponse,
    SyncOutcomeResponse,
    SyncStatusResponse,
    ZoomClip,
)

__all__ = [
    # Upstream records
    "ZoomClip",
    # Clip status API
    "ClipWithStatus",
    "ProcessClipsRequest",
    "ProcessClipsResponse",
    "SyncOutcomeResponse",
    "SyncStatusResponse",
]
