from __future__ import annotations

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from mindconnect.core.config import settings
from mindconnect.core.rate_limit import consume
from mindconnect.core.security import AuthDep
from mindconnect.schemas.chat import ChatRequest, ChatResponse
from mindconnect.services.gemini_service import get_reply, stream_reply

router = APIRouter()


async def _throttle(user_id: str) -> None:
    await consume(
        scope="chat",
        subject=user_id,
        limit=settings.chat_per_minute_limit,
        window_seconds=60,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, auth: AuthDep) -> ChatResponse:
    await _throttle(auth.user_id)
    reply = await get_reply(message=body.message, mode=body.mode)
    return ChatResponse(reply=reply.text, mode=body.mode, source=reply.source)


async def _sse_events(body: ChatRequest) -> AsyncIterator[str]:
    async for chunk in stream_reply(message=body.message, mode=body.mode):
        data = json.dumps({"text": chunk.text, "source": chunk.source}, ensure_ascii=False)
        yield f"data: {data}\n\n"
    yield "event: done\ndata: {}\n\n"


@router.post("/chat/stream")
async def chat_stream(body: ChatRequest, auth: AuthDep) -> StreamingResponse:
    await _throttle(auth.user_id)
    return StreamingResponse(
        _sse_events(body),
        media_type="text/event-stream",
        headers={"cache-control": "no-cache"},
    )
