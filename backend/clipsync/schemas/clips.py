"""
Pydantic schemas for Zoom clip records and the clip status endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ========================================
# Upstream Records
# ========================================

class ZoomClip(BaseModel):
    """One clip as returned by the Zoom Clips listing API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    clip_id: str = Field(..., alias="id", min_length=1)
    title: Optional[str] = None
    download_url: Optional[str] = None
    recording_meeting_id: Optional[str] = None

    @field_validator("clip_id", "recording_meeting_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        """Zoom sometimes returns numeric identifiers."""
        if isinstance(v, int):
            return str(v)
        return v


# ========================================
# Request Schemas
# ========================================

class ProcessClipsRequest(BaseModel):
    """Request body for ``POST /process-clips``."""

    model_config = ConfigDict(populate_by_name=True)

    clip_ids: List[str] = Field(
        ...,
        alias="clipIds",
        description="Clip identifiers to mark as processed",
        examples=[["c1", "c2"]],
    )


# ========================================
# Response Schemas
# ========================================

class ClipWithStatus(BaseModel):
    """A stored clip joined with its processing status."""

    model_config = ConfigDict(from_attributes=True)

    clip_id: str
    title: Optional[str] = None
    download_url: Optional[str] = None
    recording_meeting_id: Optional[str] = None
    created_at: datetime
    is_processed: bool = False
    knowledge_article_id: Optional[str] = None


class ProcessClipsResponse(BaseModel):
    success: bool = True


class SyncOutcomeResponse(BaseModel):
    """Outcome of a single sync cycle."""

    status: str
    started_at: datetime
    finished_at: datetime
    duration_seconds: float
    clips_fetched: int = 0
    clips_on_the_fly: int = 0
    clips_inserted: int = 0
    error_type: Optional[str] = None
    error_message: Optional[str] = None


class SyncStatusResponse(BaseModel):
    """Sync scheduler health as exposed by ``GET /sync-status``."""

    scheduler: str
    interval_minutes: int
    running: bool
    total_cycles: int
    total_failures: int
    consecutive_failures: int
    skipped_ticks: int
    last_outcome: Optional[SyncOutcomeResponse] = None
    last_success_at: Optional[datetime] = None
