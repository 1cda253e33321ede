"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from clipsync.core.config import settings
from clipsync.core.logging import get_logger, setup_logging
from clipsync.db.deps import get_current_sync_status, get_database
from clipsync.db.session import Database, init_db
from clipsync.services.clip_sync import ClipSyncService
from clipsync.services.sync_runs import SyncRunStore
from clipsync.services.sync_status import SyncStatusTracker
from clipsync.workers.scheduler import SyncScheduler

# Setup logging
setup_logging()
logger = get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events.

    Builds the shared resources (database handle, outbound HTTP client,
    sync tracker), starts the in-process scheduler when configured, and
    releases everything on shutdown.
    """
    # Startup
    logger.info(
        "starting_application",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        version=VERSION,
        sync_scheduler=settings.SYNC_SCHEDULER,
    )

    database = Database.from_settings(settings)
    await init_db(database, settings)

    http_client = httpx.AsyncClient(timeout=settings.ZOOM_REQUEST_TIMEOUT)
    tracker = SyncStatusTracker(
        scheduler=settings.SYNC_SCHEDULER,
        interval_minutes=settings.SYNC_INTERVAL_MINUTES,
    )

    app.state.database = database
    app.state.http_client = http_client
    app.state.sync_tracker = tracker

    scheduler = None
    if settings.SYNC_SCHEDULER == "inprocess":
        scheduler = SyncScheduler(
            ClipSyncService.from_settings(http_client, database, settings),
            tracker,
            interval_minutes=settings.SYNC_INTERVAL_MINUTES,
            allow_overlap=settings.SYNC_ALLOW_OVERLAP,
            run_on_startup=settings.SYNC_RUN_ON_STARTUP,
            max_concurrent_cycles=settings.SYNC_MAX_CONCURRENT_CYCLES,
            run_store=SyncRunStore(database, settings),
        )
        scheduler.start()
    app.state.sync_scheduler = scheduler

    yield

    # Shutdown
    logger.info("shutting_down_application")

    if scheduler is not None:
        await scheduler.stop()
    await http_client.aclose()
    await database.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Zoom on-the-fly clip sync and processing status API",
    version=VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


# Health check endpoints
@app.get("/health", tags=["health"], response_class=PlainTextResponse)
async def health_check() -> str:
    """Liveness check."""
    return "OK"


@app.get("/health/ready", tags=["health"])
async def readiness_check(
    database: Database = Depends(get_database),
    tracker: SyncStatusTracker = Depends(get_current_sync_status),
) -> JSONResponse:
    """
    Readiness check.
    Includes database connectivity and the last sync result.
    """
    db_healthy = await database.check_health()
    last = tracker.last_outcome

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "app_name": settings.APP_NAME,
            "environment": settings.APP_ENV,
            "version": VERSION,
            "database": "connected" if db_healthy else "disconnected",
            "last_sync": last.status if last else None,
            "consecutive_sync_failures": tracker.consecutive_failures,
        }
    )


@app.get("/", tags=["root"])
async def root() -> JSONResponse:
    """
    Root endpoint.
    """
    return JSONResponse(
        content={
            "message": f"Welcome to {settings.APP_NAME}",
            "version": VERSION,
            "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
        }
    )


# Include API routers
from clipsync.api import api_router  # noqa: E402
app.include_router(api_router)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled errors.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clipsync.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
