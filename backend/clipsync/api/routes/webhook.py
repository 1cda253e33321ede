"""
Zoom webhook intake.

Events are only logged and acknowledged; nothing acts on them yet.
"""

from fastapi import APIRouter, Request, Response

from clipsync.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Webhook"])


@router.post("/webhook", summary="Accept inbound Zoom events")
async def webhook(request: Request) -> Response:
    body = await request.body()
    logger.info(
        "webhook_hit",
        content_type=request.headers.get("content-type"),
        payload=body.decode("utf-8", errors="replace")[:4000],
    )
    return Response(content="OK", media_type="text/plain", status_code=200)
