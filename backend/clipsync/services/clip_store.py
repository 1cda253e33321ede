"""
Durable storage for clips and their processing status.

Clips and statuses are written independently and merged on read:
- sync cycles insert clips (never update them)
- the process endpoint inserts or overwrites statuses
- the listing left-joins the two, a missing status meaning "unprocessed"

Each operation runs in its own session and commits on its own; nothing
spans both tables in one transaction.
"""

import enum
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from clipsync.core.exceptions import StoreError, ValidationError
from clipsync.core.logging import get_logger
from clipsync.db.base import utc_now
from clipsync.db.session import Database
from clipsync.models.clip import Clip, ClipStatus
from clipsync.schemas.clips import ClipWithStatus, ZoomClip

logger = get_logger(__name__)


class ClipConflictPolicy(str, enum.Enum):
    """
    What ``upsert_clip`` does when the clip id is already stored.

    KEEP_FIRST (default):
        Insert if absent, otherwise do nothing. Upstream corrections to a
        clip's title or download URL after first ingestion are never picked
        up.
    REFRESH:
        Overwrite title and download URL with the latest upstream values.
        ``created_at`` is left alone. Only for a deliberate change of policy.
    """

    KEEP_FIRST = "keep_first"
    REFRESH = "refresh"

    def __str__(self) -> str:
        return self.value


class ClipStore:
    """
    Clip and clip status persistence.

    Example:
        >>> store = ClipStore(database)
        >>> inserted = await store.upsert_clip(clip)
        >>> await store.mark_processed("c1", "mock-article-id")
        >>> rows = await store.list_clips_with_status()
    """

    def __init__(
        self,
        database: Database,
        conflict_policy: ClipConflictPolicy = ClipConflictPolicy.KEEP_FIRST,
    ):
        self.database = database
        self.conflict_policy = conflict_policy

    def _insert(self, table):
        dialect = self.database.dialect_name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        raise StoreError(f"Unsupported database dialect: {dialect}")

    # ========================================
    # Clips
    # ========================================

    async def upsert_clip(self, clip: ZoomClip) -> bool:
        """
        Store a clip according to the conflict policy.

        Returns:
            True if a new row was inserted, False if the clip already existed
            (also when REFRESH overwrote it)

        Raises:
            StoreError: If the database operation fails
        """
        stmt = self._insert(Clip.__table__).values(
            clip_id=clip.clip_id,
            title=clip.title,
            download_url=clip.download_url,
            recording_meeting_id=clip.recording_meeting_id or None,
            created_at=utc_now(),
        )
        if self.conflict_policy is ClipConflictPolicy.REFRESH:
            stmt = stmt.on_conflict_do_update(
                index_elements=[Clip.clip_id],
                set_={
                    "title": stmt.excluded.title,
                    "download_url": stmt.excluded.download_url,
                },
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[Clip.clip_id])

        try:
            async with self.database.session() as session:
                existed = False
                if self.conflict_policy is ClipConflictPolicy.REFRESH:
                    # rowcount is 1 for an insert and for an update alike
                    existed = await session.scalar(
                        select(Clip.clip_id).where(Clip.clip_id == clip.clip_id)
                    ) is not None
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("clip_upsert_failed", clip_id=clip.clip_id, error=str(e))
            raise StoreError(f"Failed to store clip {clip.clip_id}") from e

        inserted = result.rowcount == 1 and not existed
        if inserted:
            logger.debug("clip_inserted", clip_id=clip.clip_id)
        return inserted

    async def get_clip(self, clip_id: str) -> Optional[Clip]:
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(Clip).where(Clip.clip_id == clip_id)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load clip {clip_id}") from e

    async def count_clips(self) -> int:
        try:
            async with self.database.session() as session:
                result = await session.execute(select(func.count()).select_from(Clip))
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise StoreError("Failed to count clips") from e

    # ========================================
    # Listing
    # ========================================

    async def list_clips_with_status(self) -> List[ClipWithStatus]:
        """
        All clips, newest first, each with its processing status.

        A clip with no status row is reported unprocessed with no article id.
        """
        stmt = (
            select(
                Clip,
                ClipStatus.is_processed,
                ClipStatus.knowledge_article_id,
            )
            .outerjoin(ClipStatus, ClipStatus.clip_id == Clip.clip_id)
            .order_by(Clip.created_at.desc(), Clip.clip_id)
        )

        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error("clip_listing_failed", error=str(e))
            raise StoreError("Failed to list clips") from e

        return [
            ClipWithStatus(
                clip_id=clip.clip_id,
                title=clip.title,
                download_url=clip.download_url,
                recording_meeting_id=clip.recording_meeting_id,
                created_at=clip.created_at,
                is_processed=bool(is_processed),
                knowledge_article_id=knowledge_article_id,
            )
            for clip, is_processed, knowledge_article_id in rows
        ]

    # ========================================
    # Status
    # ========================================

    async def mark_processed(self, clip_id: str, article_id: Optional[str]) -> None:
        """
        Insert or fully overwrite the status row for ``clip_id``.

        Repeating the call with the same arguments leaves the same state.

        Raises:
            ValidationError: If ``clip_id`` is blank
            StoreError: If the database operation fails (including an
                unknown clip id on databases that enforce the foreign key)
        """
        if not clip_id or not clip_id.strip():
            raise ValidationError("clip_id must be a non-empty string")

        now = utc_now()
        stmt = self._insert(ClipStatus.__table__).values(
            clip_id=clip_id,
            is_processed=True,
            knowledge_article_id=article_id,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ClipStatus.clip_id],
            set_={
                "is_processed": True,
                "knowledge_article_id": article_id,
                "updated_at": now,
            },
        )

        try:
            async with self.database.session() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("clip_status_write_failed", clip_id=clip_id, error=str(e))
            raise StoreError(f"Failed to mark clip {clip_id} processed") from e

        logger.info("clip_marked_processed", clip_id=clip_id, knowledge_article_id=article_id)
