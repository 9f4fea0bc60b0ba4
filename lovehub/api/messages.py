"""
LoveHub — Messages API

Conversation history, sending, read receipts, and a server-sent event
stream that pushes new messages to an open conversation view.
"""

from __future__ import annotations

from typing import AsyncIterator

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse

from lovehub.api.deps import get_services
from lovehub.config import get_settings
from lovehub.schemas.entities import Message
from lovehub.schemas.message import MarkReadRequest, MarkReadResponse, MessageCreate
from lovehub.services import Services
from lovehub.services.broker import Subscription

logger = structlog.get_logger("lovehub.api.messages")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET / — Conversation history
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/",
    response_model=list[Message],
    summary="Messages of a match, oldest first",
)
async def list_messages(
    match: str = Query(..., description="Match ID"),
    services: Services = Depends(get_services),
) -> list[Message]:
    return await services.conversations.messages_for(match)


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Send a message
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message on a match",
)
async def send_message(
    payload: MessageCreate,
    services: Services = Depends(get_services),
) -> Message:
    """Append a text and/or image message.

    The match's preview and recency are updated in the same write, and the
    message is pushed to any open streams for the match.
    """
    return await services.conversations.append_message(
        payload.match_id,
        payload.sender_id,
        text=payload.text,
        image_url=payload.image_url,
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /read — Mark the other participant's messages read
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/read",
    response_model=MarkReadResponse,
    summary="Mark a conversation read",
)
async def mark_read(
    payload: MarkReadRequest,
    services: Services = Depends(get_services),
) -> MarkReadResponse:
    marked = await services.conversations.mark_read(payload.match_id, payload.reader_id)
    return MarkReadResponse(marked=marked)


# ──────────────────────────────────────────────────────────────────────────────
# GET /stream — Live message stream (server-sent events)
# ──────────────────────────────────────────────────────────────────────────────

async def _event_stream(
    request: Request,
    subscription: Subscription,
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    log = logger.bind(match_id=subscription.match_id)
    try:
        yield ": connected\n\n"
        while not subscription.closed:
            if await request.is_disconnected():
                log.info("stream_client_disconnected")
                break
            message = await subscription.get(timeout=keepalive_seconds)
            if message is None:
                yield ": keep-alive\n\n"
                continue
            yield f"event: message\nid: {message.id}\ndata: {message.model_dump_json()}\n\n"
    finally:
        subscription.cancel()


@router.get(
    "/stream",
    summary="Stream new messages of a match",
    response_class=StreamingResponse,
)
async def stream_messages(
    request: Request,
    match: str = Query(..., description="Match ID"),
    services: Services = Depends(get_services),
) -> StreamingResponse:
    """Push every message appended to the match while the client listens.

    Replaces periodic polling; the subscription is cancelled as soon as the
    client disconnects.
    """
    subscription = await services.conversations.subscribe(match)
    return StreamingResponse(
        _event_stream(request, subscription, get_settings().CHAT_KEEPALIVE_SECONDS),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
