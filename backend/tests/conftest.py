"""
Pytest configuration and fixtures.

This file is automatically discovered by pytest and provides
shared fixtures for all test modules.

Tests run against an in-memory SQLite database (aiosqlite) and fake Zoom /
Salesforce upstreams built on ``httpx.MockTransport``; nothing touches the
network.

References:
-----------
- Pytest Fixtures: https://docs.pytest.org/en/stable/fixture.html
- FastAPI Testing: https://fastapi.tiangolo.com/tutorial/testing/
- httpx Mock Transports: https://www.python-httpx.org/advanced/transports/
"""

import os

# Settings are read at import time, so the environment must be ready first
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "APP_ENV": "testing",
    "SYNC_SCHEDULER": "disabled",
    "ZOOM_CLIENT_ID": "zoom-client",
    "ZOOM_CLIENT_SECRET": "zoom-secret",
    "SALESFORCE_CLIENT_ID": "sf-client",
    "SALESFORCE_CLIENT_SECRET": "sf-secret",
    "LOG_FORMAT": "text",
    "LOG_LEVEL": "WARNING",
})

import json
from typing import AsyncGenerator, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from clipsync.core.config import settings
from clipsync.db.deps import get_database, get_http_client, get_sync_tracker
from clipsync.db.session import Database
from clipsync.main import app
from clipsync.schemas.clips import ZoomClip
from clipsync.services.clip_store import ClipStore
from clipsync.services.sync_status import SyncStatusTracker


# ================================
# Database Fixtures
# ================================

@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """
    A fresh in-memory database per test.

    StaticPool keeps the single SQLite connection alive across sessions,
    otherwise every checkout would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db = Database(engine)
    await db.create_all()

    yield db

    await db.dispose()


@pytest.fixture
def clip_store(database: Database) -> ClipStore:
    return ClipStore(database)


@pytest.fixture
def tracker() -> SyncStatusTracker:
    return SyncStatusTracker(scheduler="disabled", interval_minutes=5)


# ================================
# Clip Fixtures
# ================================

def make_clip(
    clip_id: str,
    title: Optional[str] = None,
    download_url: Optional[str] = None,
    recording_meeting_id: Optional[str] = None,
) -> ZoomClip:
    """Build a Zoom clip record as the listing API would return it."""
    return ZoomClip.model_validate({
        "id": clip_id,
        "title": title or f"Clip {clip_id}",
        "download_url": download_url or f"https://zoom.us/clips/{clip_id}/download",
        "recording_meeting_id": recording_meeting_id,
    })


def raw_clip(clip_id: str, recording_meeting_id: Optional[str] = None, **extra) -> dict:
    data = {
        "id": clip_id,
        "title": f"Clip {clip_id}",
        "download_url": f"https://zoom.us/clips/{clip_id}/download",
        "recording_meeting_id": recording_meeting_id,
    }
    data.update(extra)
    return data


@pytest.fixture
def clip_factory() -> Callable[..., ZoomClip]:
    return make_clip


@pytest.fixture
def raw_clip_factory() -> Callable[..., dict]:
    return raw_clip


# ================================
# Fake Zoom Upstream
# ================================

class FakeZoomAPI:
    """
    In-memory Zoom token + clips endpoints.

    ``pages`` is a list of ``(clips, next_page_token)``. The first page is
    served for an empty cursor; page i+1 is served for page i's token.
    """

    def __init__(self, pages: Optional[List[Tuple[List[dict], str]]] = None):
        self.pages = pages if pages is not None else [([], "")]
        self.token_status = 200
        self.token_body: Dict = {"access_token": "zoom-access-token", "token_type": "bearer", "expires_in": 3600}
        self.page_status = 500
        self.fail_on_page: Optional[int] = None
        self.requests: List[httpx.Request] = []

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/oauth/token"]

    @property
    def page_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/users/me/clips")]

    def _page_index(self, cursor: str) -> Optional[int]:
        if not cursor:
            return 0
        for i, (_, next_token) in enumerate(self.pages):
            if next_token == cursor:
                return i + 1
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/oauth/token":
            return httpx.Response(self.token_status, json=self.token_body)

        if request.url.path.endswith("/users/me/clips"):
            if request.headers.get("Authorization") != f"Bearer {self.token_body.get('access_token')}":
                return httpx.Response(401, json={"message": "Invalid access token"})
            index = self._page_index(request.url.params.get("next_page_token", ""))
            if index is None or index >= len(self.pages):
                return httpx.Response(400, json={"message": "Invalid next_page_token"})
            if self.fail_on_page is not None and index == self.fail_on_page:
                return httpx.Response(self.page_status, json={"message": "upstream error"})
            clips, next_token = self.pages[index]
            return httpx.Response(200, json={
                "page_size": int(request.url.params.get("page_size", 50)),
                "clips": clips,
                "next_page_token": next_token,
            })

        return httpx.Response(404)


@pytest.fixture
def zoom_api() -> FakeZoomAPI:
    return FakeZoomAPI()


@pytest_asyncio.fixture
async def zoom_http(zoom_api: FakeZoomAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(zoom_api.handler)) as client:
        yield client


# ================================
# Fake Salesforce Upstream
# ================================

class FakeSalesforce:
    def __init__(self):
        self.status = 200
        self.body: Dict = {
            "access_token": "sf-access-token",
            "refresh_token": "sf-refresh-token",
            "instance_url": "https://example.my.salesforce.com",
            "token_type": "Bearer",
            "issued_at": "1760000000000",
        }
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if urlparse(str(request.url)).path == "/services/oauth2/token":
            if self.status >= 400:
                return httpx.Response(self.status, content=json.dumps({
                    "error": "invalid_grant",
                    "error_description": "authentication failure",
                }))
            return httpx.Response(200, json=self.body)
        return httpx.Response(404)


@pytest.fixture
def salesforce_api() -> FakeSalesforce:
    return FakeSalesforce()


# ================================
# FastAPI Client Fixtures
# ================================

@pytest_asyncio.fixture
async def client(
    database: Database,
    tracker: SyncStatusTracker,
    salesforce_api: FakeSalesforce,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing FastAPI endpoints.

    The lifespan does not run under ASGITransport, so the handles it would
    create are supplied through dependency overrides.

    Usage:
        async def test_something(client: AsyncClient):
            response = await client.get("/clips")
            assert response.status_code == 200
    """
    outbound = httpx.AsyncClient(transport=httpx.MockTransport(salesforce_api.handler))

    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_sync_tracker] = lambda: tracker
    app.dependency_overrides[get_http_client] = lambda: outbound

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up
    app.dependency_overrides.clear()
    await outbound.aclose()


@pytest.fixture
def mock_article_id() -> str:
    return settings.MOCK_KNOWLEDGE_ARTICLE_ID
