"""
Database Session Management

This module handles the database connection lifecycle and session management.

Key Concepts:
--------------
1. Engine: The core of SQLAlchemy's database communication
2. Session: A workspace for database operations (like a transaction)
3. Connection Pooling: Reusing database connections for performance
4. Database: A handle that owns one engine and its session factory

There is no module-level engine. The FastAPI lifespan (or a Celery task)
builds a ``Database`` from settings, hands it to every component that needs
storage, and disposes it on shutdown.

Architecture Flow:
------------------
Application Start → Database.from_settings() → Connection Pool Ready
↓
Store operation → database.session() → Execute Query → Commit/Rollback → Close
↓
Application Shutdown → database.dispose() → Close All Connections
"""

import ssl
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from clipsync.core.config import Settings, settings as default_settings
from clipsync.core.logging import get_logger

logger = get_logger(__name__)


# ================================
# Database Engine Configuration
# ================================

def build_ssl_context(verify: bool) -> ssl.SSLContext:
    """
    TLS context for asyncpg.

    With ``verify=False`` the connection is still encrypted but the server
    certificate is not checked.
    """
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def get_engine_config(config: Settings) -> dict[str, Any]:
    """
    Configure the database engine based on environment.

    Pool Types:
    -----------
    1. AsyncAdaptedQueuePool (development/production):
       - Keeps DB_POOL_SIZE connections open, DB_MAX_OVERFLOW extra on demand
       - Shared by HTTP requests and sync cycles
    2. NullPool (staging/testing):
       - New connection per checkout, closed immediately after use
    """
    engine_config: dict[str, Any] = {
        "echo": config.DB_ECHO,
        # Test connection health before using
        "pool_pre_ping": True,
    }

    url = make_url(config.DATABASE_URL)
    if url.get_backend_name() == "postgresql":
        connect_args: dict[str, Any] = {
            "server_settings": {
                "application_name": config.APP_NAME,
            }
        }
        if config.DB_SSL_ENABLED:
            connect_args["ssl"] = build_ssl_context(config.DB_SSL_VERIFY)
        engine_config["connect_args"] = connect_args

    if config.is_development or config.is_production:
        logger.info(
            "configuring_database_engine",
            environment=config.APP_ENV,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            ssl=config.DB_SSL_ENABLED,
            ssl_verify=config.DB_SSL_VERIFY,
        )
        engine_config.update({
            "poolclass": AsyncAdaptedQueuePool,
            "pool_size": config.DB_POOL_SIZE,
            "max_overflow": config.DB_MAX_OVERFLOW,
            "pool_timeout": 30,
            "pool_recycle": 7200 if config.is_production else 3600,
        })
    else:
        logger.info(
            "configuring_database_engine",
            environment=config.APP_ENV,
            pool_type="NullPool",
        )
        engine_config["poolclass"] = NullPool

    return engine_config


def create_engine(config: Optional[Settings] = None) -> AsyncEngine:
    """Create the async database engine from settings."""
    config = config or default_settings
    engine_config = get_engine_config(config)

    engine = create_async_engine(config.DATABASE_URL, **engine_config)

    logger.info(
        "database_engine_created",
        driver=engine.dialect.driver,
        pool_size=engine_config.get("pool_size", "NullPool"),
    )
    return engine


# ================================
# Database Handle
# ================================

class Database:
    """
    Owns one engine and its session factory.

    Every logical operation opens its own session with ``session()``, so a
    connection is checked out per operation and returned right after.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "Database":
        return cls(create_engine(config))

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session, rolling back on error.

        Callers commit explicitly; an exception rolls the session back
        and is re-raised.
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception as e:
                logger.error(
                    "database_session_error",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        from clipsync.db.base import Base
        import clipsync.models  # noqa: F401  registers the mappers

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_created")

    async def check_health(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(
                "database_health_check_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def dispose(self) -> None:
        """Close every pooled connection."""
        logger.info("closing_database_connections")
        try:
            await self.engine.dispose()
            logger.info("database_connections_closed")
        except Exception as e:
            logger.error(
                "database_closure_failed",
                error=str(e),
                error_type=type(e).__name__,
            )


async def init_db(database: Database, config: Optional[Settings] = None) -> None:
    """
    Verify the connection at startup and, in development, create tables.

    Called from: clipsync.main.lifespan() startup event
    """
    config = config or default_settings
    logger.info("initializing_database")

    try:
        async with database.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("database_connection_successful")

        if config.is_development:
            await database.create_all()

    except Exception as e:
        logger.error(
            "database_initialization_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
