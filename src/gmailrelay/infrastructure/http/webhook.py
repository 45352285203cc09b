"""Push webhook endpoint for Gmail notifications delivered by Pub/Sub."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from loguru import logger

from gmailrelay.domain.entities.notification import decode_envelope
from gmailrelay.domain.errors import DecodeError
from gmailrelay.infrastructure.http.dispatcher import NotificationDispatcher


router = APIRouter()

SUPPORTED_SOURCES = frozenset({"gmail"})


# ============================================================================
# Endpoint
# ============================================================================


@router.post("/webhook/{source}")
async def receive_push(source: str, request: Request) -> dict:
    """
    Receive a Pub/Sub push for a mailbox change.

    This endpoint:
    1. Decodes the envelope into {emailAddress, historyId}
    2. Schedules background processing
    3. Returns 200 immediately

    Always answers 200 for a known source, even on failure, so Pub/Sub does
    not redeliver messages that would fail the same way again.
    """
    if source not in SUPPORTED_SOURCES:
        raise HTTPException(status_code=404, detail="Not Found")

    body = await request.body()
    try:
        notification = decode_envelope(body)
    except DecodeError as e:
        logger.error(f"Error decoding {source} webhook: {e}")
        return {"status": "ignored"}

    try:
        dispatcher: NotificationDispatcher = request.app.state.dispatcher
        dispatcher.submit(notification)
    except Exception as e:
        logger.exception(f"Error scheduling {source} notification: {e}")
        return {"status": "error"}

    return {"status": "accepted"}


# ============================================================================
# Health check
# ============================================================================


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    """Liveness check."""
    return "OK"


# ============================================================================
# Everything else on the known paths is Not Found, not Method Not Allowed
# ============================================================================


@router.api_route("/webhook/{source}", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
@router.api_route("/health", methods=["POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def not_found() -> None:
    raise HTTPException(status_code=404, detail="Not Found")
