"""
Salesforce OAuth endpoints.

Connects the service to a Salesforce org so knowledge articles can be
written there later. Only the token acquisition is implemented.
"""

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from clipsync.core.exceptions import SalesforceAuthError, StoreError
from clipsync.core.logging import get_logger
from clipsync.db.deps import CrmTokenStoreDep, HttpClientDep
from clipsync.services.salesforce import (
    build_authorize_url,
    exchange_code,
    redirect_uri_for_host,
)

logger = get_logger(__name__)

router = APIRouter(tags=["Salesforce"])


@router.get("/salesforce-auth", summary="Start the Salesforce OAuth flow")
async def salesforce_auth(request: Request) -> RedirectResponse:
    """Redirect the browser to the Salesforce authorize page."""
    redirect_uri = redirect_uri_for_host(request.headers.get("host", ""))
    return RedirectResponse(build_authorize_url(redirect_uri), status_code=302)


@router.get("/salesforce-callback", summary="Salesforce OAuth callback")
async def salesforce_callback(
    request: Request,
    http_client: HttpClientDep,
    token_store: CrmTokenStoreDep,
    code: str = Query("", description="Authorization code issued by Salesforce"),
):
    """
    Exchange the authorization code, persist the token, return to ``/``.

    Failures are reported inline as plain text.
    """
    redirect_uri = redirect_uri_for_host(request.headers.get("host", ""))
    try:
        token = await exchange_code(http_client, code, redirect_uri)
        await token_store.save(token)
    except (SalesforceAuthError, StoreError) as e:
        logger.warning("salesforce_oauth_failed", error=str(e), error_type=type(e).__name__)
        return PlainTextResponse(f"Salesforce OAuth failed: {e}")

    return RedirectResponse("/", status_code=302)
