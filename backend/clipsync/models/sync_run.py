"""
Sync Run Model

One row per finished sync cycle. Written by whichever process ran the
cycle (the API's in-process scheduler or a Celery worker) and read by the
API for ``/sync-status``, so outcomes are visible across processes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.base import BaseModel, String100


class SyncRun(BaseModel):
    """
    Table: sync_runs
    ----------------
    Append-only; rows older than ``SYNC_RUN_RETENTION_DAYS`` are pruned
    when a new run is recorded.
    """

    __tablename__ = "sync_runs"

    status: Mapped[str] = mapped_column(
        String100,
        nullable=False,
        comment="success or failure"
    )

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    finished_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    clips_fetched: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clips_on_the_fly: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clips_inserted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    error_type: Mapped[Optional[str]] = mapped_column(String100, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"SyncRun(id={self.id}, status={self.status!r}, started_at={self.started_at})"
