"""
Clip Models

Models Included:
----------------
1. Clip - One row per unique Zoom clip identifier
2. ClipStatus - Processing status of a clip, owned by the processing pipeline

Database Tables:
----------------
- clips: Written only by sync cycles (insert-if-absent, never updated)
- clip_statuses: Written only by the process endpoint (insert-or-overwrite)

Keys:
-----
- clip_statuses.clip_id references clips.clip_id (zero or one status per clip)

The two tables are never written in the same transaction. A clip without a
status row is reported as unprocessed.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.base import Base, BaseModel, String255, String2048, utc_now


class Clip(Base):
    """
    A Zoom clip harvested by the sync engine.

    Table: clips
    ------------
    ``clip_id`` is the Zoom clip id and the primary key. Rows are inserted by
    sync cycles and then left alone: a later title or download URL change
    upstream is not reflected here.

    "On the fly" clips have no ``recording_meeting_id``. Only those are
    stored, so the column is normally NULL; it is kept to mirror the
    upstream record.
    """

    __tablename__ = "clips"

    clip_id: Mapped[str] = mapped_column(
        String255,
        primary_key=True,
        comment="Zoom clip identifier"
    )

    title: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Clip title as first ingested"
    )

    download_url: Mapped[Optional[str]] = mapped_column(
        String2048,
        nullable=True,
        comment="Download URL as first ingested"
    )

    recording_meeting_id: Mapped[Optional[str]] = mapped_column(
        String255,
        nullable=True,
        comment="Scheduled meeting recording this clip belongs to, if any"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
        comment="Timestamp of first insert (UTC)"
    )

    def __repr__(self) -> str:
        return f"Clip(clip_id={self.clip_id!r}, title={self.title!r})"


class ClipStatus(BaseModel):
    """
    Processing status for one clip.

    Table: clip_statuses
    --------------------
    Zero or one row per clip. Created or fully overwritten when a clip is
    marked processed; never deleted.
    """

    __tablename__ = "clip_statuses"

    clip_id: Mapped[str] = mapped_column(
        String255,
        ForeignKey("clips.clip_id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="Foreign key to clips table"
    )

    is_processed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Whether a knowledge article has been produced"
    )

    knowledge_article_id: Mapped[Optional[str]] = mapped_column(
        String255,
        nullable=True,
        comment="Identifier of the derived CRM knowledge article"
    )

    def __repr__(self) -> str:
        return (
            f"ClipStatus(clip_id={self.clip_id!r}, "
            f"is_processed={self.is_processed}, "
            f"knowledge_article_id={self.knowledge_article_id!r})"
        )
