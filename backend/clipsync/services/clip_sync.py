"""
The clip sync cycle: token → fetch all pages → filter → store.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from clipsync.core.config import Settings, settings as default_settings
from clipsync.core.exceptions import StoreError
from clipsync.core.logging import get_logger
from clipsync.db.base import utc_now
from clipsync.db.session import Database
from clipsync.services.clip_filter import filter_on_the_fly
from clipsync.services.clip_store import ClipStore
from clipsync.services.sync_status import SyncStatusTracker
from clipsync.services.zoom import ZoomClipFetcher, ZoomCredentialProvider

if TYPE_CHECKING:
    from clipsync.services.sync_runs import SyncRunStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one sync cycle, successful or not."""

    status: str
    started_at: datetime
    finished_at: datetime
    clips_fetched: int = 0
    clips_on_the_fly: int = 0
    clips_inserted: int = 0
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def succeeded(self) -> bool:
        return self.status == self.SUCCESS

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    @classmethod
    def failure(cls, started_at: datetime, error: BaseException) -> "SyncOutcome":
        return cls(
            status=cls.FAILURE,
            started_at=started_at,
            finished_at=utc_now(),
            error_type=type(error).__name__,
            error_message=str(error),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["finished_at"] = self.finished_at.isoformat()
        data["duration_seconds"] = self.duration_seconds
        return data


class ClipSyncService:
    """
    Runs the fetch-filter-store pipeline once per call.

    Collaborators are injected so the same service runs under the in-process
    scheduler, the Celery task, and tests.
    """

    def __init__(
        self,
        credentials: ZoomCredentialProvider,
        fetcher: ZoomClipFetcher,
        store: ClipStore,
    ):
        self.credentials = credentials
        self.fetcher = fetcher
        self.store = store

    @classmethod
    def from_settings(
        cls,
        http_client: httpx.AsyncClient,
        database: Database,
        config: Optional[Settings] = None,
    ) -> "ClipSyncService":
        config = config or default_settings
        return cls(
            credentials=ZoomCredentialProvider(http_client, config),
            fetcher=ZoomClipFetcher(http_client, config),
            store=ClipStore(database),
        )

    async def run_cycle(self) -> SyncOutcome:
        """
        Run one sync cycle.

        Clips are upserted one at a time in page-then-record order.

        Raises:
            AuthError: Token acquisition failed (nothing stored)
            FetchError: A page request failed (nothing stored)
            StoreError: A write failed (clips before it stay stored)
        """
        started_at = utc_now()
        logger.info("sync_cycle_started")

        token = await self.credentials.acquire_token()
        clips = await self.fetcher.fetch_all_clips(token)
        on_the_fly = filter_on_the_fly(clips)

        inserted = 0
        for clip in on_the_fly:
            if await self.store.upsert_clip(clip):
                inserted += 1

        outcome = SyncOutcome(
            status=SyncOutcome.SUCCESS,
            started_at=started_at,
            finished_at=utc_now(),
            clips_fetched=len(clips),
            clips_on_the_fly=len(on_the_fly),
            clips_inserted=inserted,
        )
        logger.info(
            "sync_cycle_completed",
            clips_fetched=outcome.clips_fetched,
            clips_on_the_fly=outcome.clips_on_the_fly,
            clips_inserted=outcome.clips_inserted,
            duration_seconds=round(outcome.duration_seconds, 3),
        )
        return outcome


async def run_supervised_cycle(
    service: ClipSyncService,
    tracker: Optional[SyncStatusTracker] = None,
    run_store: Optional["SyncRunStore"] = None,
) -> SyncOutcome:
    """
    Run a cycle and never raise.

    Errors are logged and turned into a failure outcome; the outcome is
    recorded on ``tracker`` and appended to ``run_store`` when given.
    Cancellation still propagates.
    """
    started_at = utc_now()
    try:
        outcome = await service.run_cycle()
    except Exception as e:
        logger.error(
            "sync_cycle_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        outcome = SyncOutcome.failure(started_at, e)

    if tracker is not None:
        tracker.record(outcome)
    if run_store is not None:
        try:
            await run_store.record(outcome)
        except StoreError as e:
            logger.error("sync_run_not_persisted", error=str(e), status=outcome.status)
    return outcome
