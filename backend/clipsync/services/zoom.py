"""
Zoom API service for acquiring access tokens and listing clips.

This module wraps the two Zoom endpoints the sync engine needs:
- the OAuth token endpoint (client credentials exchange)
- the cursor-paginated Clips listing
"""

import base64
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from clipsync.core.config import Settings, settings as default_settings
from clipsync.core.exceptions import AuthError, FetchError, PaginationLimitExceeded
from clipsync.core.logging import get_logger
from clipsync.schemas.clips import ZoomClip

logger = get_logger(__name__)


@dataclass(frozen=True)
class BearerToken:
    """Short-lived Zoom access token. Expiry is not tracked by callers."""

    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None

    @property
    def authorization_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """``Basic base64(id:secret)`` as sent to the token endpoint."""
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class ZoomCredentialProvider:
    """
    Exchanges the app's client credentials for a bearer token.

    A fresh token is requested on every call; each sync cycle calls this
    once, so token expiry never has to be handled.

    Example:
        >>> provider = ZoomCredentialProvider(http_client)
        >>> token = await provider.acquire_token()
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: Optional[Settings] = None,
    ):
        self._http = http_client
        self._config = config or default_settings

    async def acquire_token(self) -> BearerToken:
        """
        Request a new access token.

        Raises:
            AuthError: If credentials are missing, the endpoint is unreachable,
                rejects the credentials, or returns no access token
        """
        config = self._config
        if not (config.ZOOM_CLIENT_ID and config.ZOOM_CLIENT_SECRET):
            raise AuthError(
                "Zoom credentials are not configured. "
                "Set ZOOM_CLIENT_ID and ZOOM_CLIENT_SECRET."
            )

        params = {"grant_type": config.ZOOM_GRANT_TYPE}
        if config.ZOOM_ACCOUNT_ID:
            params["account_id"] = config.ZOOM_ACCOUNT_ID

        headers = {
            "Authorization": basic_auth_header(
                config.ZOOM_CLIENT_ID, config.ZOOM_CLIENT_SECRET
            ),
        }

        try:
            response = await self._http.post(
                config.ZOOM_TOKEN_URL, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("zoom_token_request_failed", error=str(e), error_type=type(e).__name__)
            raise AuthError(f"Zoom token endpoint unreachable: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "zoom_token_rejected",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise AuthError(f"Zoom token endpoint returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError("Zoom token endpoint returned a non-JSON body") from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise AuthError("Zoom token response did not include an access_token")

        logger.debug("zoom_token_acquired", expires_in=payload.get("expires_in"))

        return BearerToken(
            access_token=access_token,
            token_type=payload.get("token_type", "bearer"),
            expires_in=payload.get("expires_in"),
            scope=payload.get("scope"),
        )


class ZoomClipFetcher:
    """
    Walks the Zoom Clips listing to completion.

    Pages are requested strictly in cursor order and concatenated in the
    order received. Any failure discards everything fetched so far.

    Pagination is bounded three ways, each raising ``PaginationLimitExceeded``:
    - more than ``max_pages`` pages
    - more than ``max_seconds`` elapsed
    - a cursor the server already returned earlier in the walk
    """

    CLIPS_PATH = "/users/me/clips"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: Optional[Settings] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        max_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = config or default_settings
        self._http = http_client
        self._url = config.ZOOM_API_BASE_URL.rstrip("/") + self.CLIPS_PATH
        self.page_size = page_size or config.ZOOM_CLIPS_PAGE_SIZE
        self.max_pages = max_pages or config.ZOOM_MAX_PAGES
        self.max_seconds = max_seconds or config.ZOOM_MAX_FETCH_SECONDS
        self._clock = clock

    async def fetch_all_clips(self, token: BearerToken) -> List[ZoomClip]:
        """
        Fetch every clip visible to the token.

        Returns:
            All clips across all pages, in page-then-record order

        Raises:
            FetchError: On any page failure or malformed record
            PaginationLimitExceeded: When a pagination bound is hit
        """
        clips: List[ZoomClip] = []
        seen_cursors: set[str] = set()
        cursor = ""
        pages = 0
        started = self._clock()

        while True:
            if pages >= self.max_pages:
                raise PaginationLimitExceeded(
                    f"Clip listing exceeded {self.max_pages} pages", pages_fetched=pages
                )
            elapsed = self._clock() - started
            if elapsed > self.max_seconds:
                raise PaginationLimitExceeded(
                    f"Clip listing exceeded {self.max_seconds:.0f}s "
                    f"after {pages} pages",
                    pages_fetched=pages,
                )

            page_clips, next_cursor = await self._fetch_page(token, cursor)
            pages += 1
            clips.extend(page_clips)

            logger.debug(
                "zoom_clip_page_fetched",
                page=pages,
                clips_on_page=len(page_clips),
                has_next=bool(next_cursor),
            )

            if not next_cursor:
                break
            if next_cursor in seen_cursors:
                raise PaginationLimitExceeded(
                    f"Clip listing returned a repeated cursor after {pages} pages",
                    pages_fetched=pages,
                )
            seen_cursors.add(next_cursor)
            cursor = next_cursor

        logger.info("zoom_clips_fetched", pages=pages, clips=len(clips))
        return clips

    async def _fetch_page(self, token: BearerToken, cursor: str) -> tuple[List[ZoomClip], str]:
        params: Dict[str, object] = {"user_id": "me", "page_size": self.page_size}
        if cursor:
            params["next_page_token"] = cursor

        try:
            response = await self._http.get(
                self._url, params=params, headers=token.authorization_header
            )
        except httpx.HTTPError as e:
            logger.error("zoom_clip_page_failed", error=str(e), error_type=type(e).__name__)
            raise FetchError(f"Clip page request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "zoom_clip_page_rejected",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise FetchError(f"Clip page request returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError("Clip page response was not JSON") from e
        if not isinstance(payload, dict):
            raise FetchError("Clip page response was not a JSON object")

        raw_clips = payload.get("clips") or []
        try:
            page_clips = [ZoomClip.model_validate(raw) for raw in raw_clips]
        except PydanticValidationError as e:
            raise FetchError(f"Malformed clip record: {e.errors()[0]['msg']}") from e

        return page_clips, payload.get("next_page_token") or ""
