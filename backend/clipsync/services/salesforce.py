"""
Salesforce OAuth utilities.

The web-server (authorization code) flow:
1. ``/salesforce-auth`` redirects the browser to the Salesforce authorize URL
2. Salesforce redirects back to ``/salesforce-callback?code=...``
3. The code is exchanged for an access token (and refresh token)
4. The token set is persisted for the future knowledge-article writer

References:
-----------
- Salesforce OAuth 2.0 Web Server Flow:
  https://help.salesforce.com/s/articleView?id=sf.remoteaccess_oauth_web_server_flow.htm
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

import httpx

from clipsync.core.config import Settings, settings as default_settings
from clipsync.core.exceptions import SalesforceAuthError
from clipsync.core.logging import get_logger

logger = get_logger(__name__)

CALLBACK_PATH = "/salesforce-callback"


@dataclass(frozen=True)
class SalesforceToken:
    access_token: str
    refresh_token: Optional[str] = None
    instance_url: Optional[str] = None
    token_type: Optional[str] = None
    issued_at: Optional[datetime] = None


def redirect_uri_for_host(host: str, config: Optional[Settings] = None) -> str:
    """
    Callback URL registered with the Salesforce connected app.

    ``SALESFORCE_REDIRECT_URI`` wins; otherwise it is built from the request
    host, always over https.
    """
    config = config or default_settings
    if config.SALESFORCE_REDIRECT_URI:
        return config.SALESFORCE_REDIRECT_URI
    return f"https://{host}{CALLBACK_PATH}"


def build_authorize_url(redirect_uri: str, config: Optional[Settings] = None) -> str:
    config = config or default_settings
    query = urlencode(
        {
            "response_type": "code",
            "client_id": config.SALESFORCE_CLIENT_ID or "",
            "redirect_uri": redirect_uri,
            "scope": config.SALESFORCE_SCOPE,
        }
    )
    return f"{config.SALESFORCE_LOGIN_URL.rstrip('/')}/services/oauth2/authorize?{query}"


def _parse_issued_at(value) -> Optional[datetime]:
    # Salesforce reports issued_at as epoch milliseconds in a string
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError):
        return None


async def exchange_code(
    http_client: httpx.AsyncClient,
    code: str,
    redirect_uri: str,
    config: Optional[Settings] = None,
) -> SalesforceToken:
    """
    Exchange an authorization code for a token set.

    Raises:
        SalesforceAuthError: If the code is missing, the app is not configured,
            or Salesforce rejects the exchange
    """
    config = config or default_settings
    if not code:
        raise SalesforceAuthError("Missing authorization code")
    if not (config.SALESFORCE_CLIENT_ID and config.SALESFORCE_CLIENT_SECRET):
        raise SalesforceAuthError("Salesforce client credentials are not configured")

    token_url = f"{config.SALESFORCE_LOGIN_URL.rstrip('/')}/services/oauth2/token"
    params = {
        "grant_type": "authorization_code",
        "code": code,
        "client_id": config.SALESFORCE_CLIENT_ID,
        "client_secret": config.SALESFORCE_CLIENT_SECRET,
        "redirect_uri": redirect_uri,
    }

    try:
        response = await http_client.post(token_url, params=params)
    except httpx.HTTPError as e:
        raise SalesforceAuthError(f"Token endpoint unreachable: {e}") from e

    if response.status_code >= 400:
        description = ""
        try:
            body = response.json()
            description = body.get("error_description") or body.get("error") or ""
        except ValueError:
            pass
        logger.warning(
            "salesforce_code_exchange_rejected",
            status_code=response.status_code,
            error=description,
        )
        raise SalesforceAuthError(
            f"Request failed with status code {response.status_code}"
            + (f": {description}" if description else "")
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise SalesforceAuthError("Token endpoint returned a non-JSON body") from e

    access_token = payload.get("access_token")
    if not access_token:
        raise SalesforceAuthError("Token response did not include an access_token")

    return SalesforceToken(
        access_token=access_token,
        refresh_token=payload.get("refresh_token"),
        instance_url=payload.get("instance_url"),
        token_type=payload.get("token_type"),
        issued_at=_parse_issued_at(payload.get("issued_at")),
    )
