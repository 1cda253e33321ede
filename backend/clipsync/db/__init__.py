"""Database utilities and session management."""

from clipsync.db.base import Base, BaseModel, String100, String255, String2048
from clipsync.db.session import Database, create_engine, init_db

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    # String types
    "String100",
    "String255",
    "String2048",
    # Session management
    "Database",
    "create_engine",
    "init_db",
]
