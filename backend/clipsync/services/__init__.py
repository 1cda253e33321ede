"""Business logic services."""

from clipsync.services.clip_filter import filter_on_the_fly, is_on_the_fly
from clipsync.services.clip_store import ClipConflictPolicy, ClipStore
from clipsync.services.clip_sync import ClipSyncService, SyncOutcome
from clipsync.services.sync_runs import SyncRunStore, SyncRunSummary
from clipsync.services.sync_status import SyncStatusTracker
from clipsync.services.zoom import BearerToken, ZoomClipFetcher, ZoomCredentialProvider

__all__ = [
    "BearerToken",
    "ZoomCredentialProvider",
    "ZoomClipFetcher",
    "is_on_the_fly",
    "filter_on_the_fly",
    "ClipConflictPolicy",
    "ClipStore",
    "ClipSyncService",
    "SyncOutcome",
    "SyncStatusTracker",
    "SyncRunStore",
    "SyncRunSummary",
]
