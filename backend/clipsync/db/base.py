"""
Database Base Classes and Common Utilities

This module provides the foundation for all database models in the application.

Key Concepts:
--------------
1. DeclarativeBase: SQLAlchemy's base class that enables ORM functionality
2. CommonTableAttributes: Shared columns/methods for models with a surrogate key
3. orm_registry: Central registry that tracks all models and their metadata

Not every table uses the surrogate key: ``clips`` is keyed by the Zoom clip
identifier, so it inherits from ``Base`` directly.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, registry


# ================================
# Naming Convention for Constraints
# ================================
# Consistent constraint names keep Alembic autogenerate stable.
#
# Format examples:
# - uq_clip_statuses_clip_id: Unique constraint on 'clip_statuses.clip_id'
# - fk_clip_statuses_clip_id_clips: Foreign key from 'clip_statuses.clip_id' to 'clips'
# - pk_clips: Primary key on 'clips' table
convention = {
    "ix": "ix_%(column_0_label)s",  # Index
    "uq": "uq_%(table_name)s_%(column_0_name)s",  # Unique constraint
    "ck": "ck_%(table_name)s_%(constraint_name)s",  # Check constraint
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",  # Foreign key
    "pk": "pk_%(table_name)s",  # Primary key
}

metadata = MetaData(naming_convention=convention)

orm_registry = registry(metadata=metadata)


def utc_now() -> datetime:
    """Timezone-aware current time, used for all timestamp defaults."""
    return datetime.now(timezone.utc)


# ================================
# Base DeclarativeBase Class
# ================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        class Clip(Base):
            __tablename__ = "clips"
            clip_id: Mapped[str] = mapped_column(primary_key=True)
    """

    registry = orm_registry
    metadata = metadata

    __tablename__: str


# ================================
# Common Table Attributes Mixin
# ================================
class CommonTableAttributes:
    """
    Mixin that provides an auto-incrementing id plus created/updated timestamps.

    Timestamps are stored as UTC (TIMESTAMP WITH TIME ZONE on PostgreSQL).
    ``updated_at`` changes on every ORM update and is set explicitly by
    Core upserts that bypass the ORM.
    """

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        comment="Timestamp when record was created (UTC)"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
        comment="Timestamp when record was last updated (UTC)"
    )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"

    def dict(self) -> dict[str, Any]:
        """Convert model instance to dictionary."""
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }


class BaseModel(Base, CommonTableAttributes):
    """
    Ready-to-use base class for models with a surrogate primary key.

    Every model automatically gets:
    - Primary key (id)
    - Creation timestamp (created_at)
    - Update timestamp (updated_at)
    """

    __abstract__ = True


# ================================
# String Length Constraints
# ================================
String100 = String(100)  # Example: provider names, token types
String255 = String(255)  # Example: clip ids, titles, article ids
String2048 = String(2048)  # Example: download URLs, instance URLs
