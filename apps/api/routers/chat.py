"""
Research Partner Chat API Router

Streams the model's reply as plain text, chunk by chunk, as it is produced.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from core.database import get_db
from core.auth import get_current_user
from models import Profile
from schemas import ChatContextResponse, ChatRequest
from services.chat_context import build_research_context, build_system_prompt, format_context
from services.chat_relay import ChatRelay, get_chat_relay
from services.dates import today_local

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/chat", tags=["Chat"])

CHAT_FAILED = "Failed to process chat request"
CHAT_UNAVAILABLE = "Chat is not configured"


@router.post("")
def chat(
    request: ChatRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
    relay: Optional[ChatRelay] = Depends(get_chat_relay),
):
    """
    Send the conversation so far and stream back the assistant's reply.

    The prompt is built from `context` when the client sends one, otherwise
    from the caller's stored experiments and logs.
    """
    if relay is None:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"error": CHAT_UNAVAILABLE})

    today = today_local()
    context = request.context or build_research_context(db, current_user, today)
    system_prompt = build_system_prompt(context, today)

    try:
        stream = relay.open_stream(system_prompt, request.messages)
    except Exception as e:
        logger.error(f"Chat API error: {e}", exc_info=True)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": CHAT_FAILED})

    return StreamingResponse(
        relay.relay(stream),
        media_type="text/plain; charset=utf-8",
        headers={
            "Cache-Control": "no-cache",
            # Nginx / some proxies buffer by default; disable buffering when present.
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/context", response_model=ChatContextResponse)
async def get_chat_context(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Preview the data the assistant would see."""
    context = build_research_context(db, current_user, today_local())
    return ChatContextResponse(context=format_context(context))
