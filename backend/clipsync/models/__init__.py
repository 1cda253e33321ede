"""
Database Models

Import models from this module to ensure they're registered with SQLAlchemy:

    from clipsync.models import Clip, ClipStatus, CrmToken, SyncRun

This ensures that:
1. Alembic can detect all models for migrations
2. Relationships work correctly
3. ``Database.create_all`` sees every table
"""

from clipsync.models.clip import Clip, ClipStatus
from clipsync.models.crm_token import CrmToken
from clipsync.models.sync_run import SyncRun

__all__ = [
    "Clip",
    "ClipStatus",
    "CrmToken",
    "SyncRun",
]
