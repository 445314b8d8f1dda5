from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from mindconnect.core.config import settings
from mindconnect.schemas.chat import BotMode, ReplySource
from mindconnect.services.chat_responses import fallback_reply

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

_TONES: dict[str, str] = {
    "mindful": "calm, mindful, and supportive",
    "boost": "energetic, motivational, and encouraging",
}


@dataclass(frozen=True)
class ReplyChunk:
    text: str  # accumulated reply so far
    source: ReplySource


def build_prompt(message: str, mode: BotMode) -> str:
    return (
        "You are a wellness companion for college students. "
        f"Respond in a {_TONES[mode]} tone. User message: {message}"
    )


def _payload(prompt: str) -> dict[str, Any]:
    return {"contents": [{"parts": [{"text": prompt}]}]}


def _headers() -> dict[str, str]:
    return {
        "x-goog-api-key": settings.gemini_api_key or "",
        "content-type": "application/json",
    }


def extract_candidate_text(resp_json: Any) -> str | None:
    if not isinstance(resp_json, dict):
        return None
    candidates = resp_json.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) and text else None


def parse_sse_line(line: str) -> str | None:
    """Text carried by one ``data:`` line of the stream, if any."""
    if not line.startswith("data:"):
        return None
    raw = line[len("data:"):].strip()
    if not raw:
        return None
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return extract_candidate_text(obj)


_RETRYABLE_STATUSES = {408, 425, 429, 500, 502, 503, 504}


def _is_retryable_exception(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True

    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUSES

    return False


def _before_sleep_log(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, httpx.HTTPStatusError):
        logger.warning(
            "Gemini request retrying due to status %s (attempt %s)",
            exc.response.status_code,
            retry_state.attempt_number,
        )
    else:
        logger.warning(
            "Gemini request retrying due to transport error (attempt %s)",
            retry_state.attempt_number,
        )


async def stream_gemini_text(prompt: str) -> AsyncIterator[str]:
    url = f"{GEMINI_BASE_URL}/{settings.gemini_model}:streamGenerateContent"
    timeout = httpx.Timeout(settings.gemini_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout) as client:
        async with client.stream(
            "POST",
            url,
            params={"alt": "sse"},
            headers=_headers(),
            json=_payload(prompt),
        ) as resp:
            resp.raise_for_status()
            async for line in resp.aiter_lines():
                text = parse_sse_line(line)
                if text:
                    yield text


async def generate_gemini_text(prompt: str) -> str | None:
    url = f"{GEMINI_BASE_URL}/{settings.gemini_model}:generateContent"
    timeout = httpx.Timeout(settings.gemini_timeout_seconds)
    resp_json: Any = None
    async with httpx.AsyncClient(timeout=timeout) as client:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(3),
            wait=wait_exponential_jitter(initial=0.4, max=3.0),
            retry=retry_if_exception(_is_retryable_exception),
            reraise=True,
            before_sleep=_before_sleep_log,
        ):
            with attempt:
                resp = await client.post(url, headers=_headers(), json=_payload(prompt))
                resp.raise_for_status()
                resp_json = resp.json()
    return extract_candidate_text(resp_json)


async def stream_reply(*, message: str, mode: BotMode) -> AsyncIterator[ReplyChunk]:
    """
    Yields the growing chatbot reply.

    Gemini's SSE stream is tried first, then a single non-streaming call when
    the stream carried no text. Any upstream failure, or a missing API key,
    ends with the keyword reply, which replaces whatever partial text was
    already yielded.
    """
    if settings.is_gemini_configured():
        prompt = build_prompt(message, mode)
        full_text = ""
        try:
            async for piece in stream_gemini_text(prompt):
                full_text += piece
                yield ReplyChunk(text=full_text, source="gemini")
            if full_text:
                return

            reply = await generate_gemini_text(prompt)
            if reply:
                yield ReplyChunk(text=reply, source="gemini")
                return
            logger.warning("Gemini returned no candidate text; using fallback reply")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Gemini request failed (%s); using fallback reply", type(exc).__name__)

    yield ReplyChunk(text=fallback_reply(message, mode), source="fallback")


async def get_reply(*, message: str, mode: BotMode) -> ReplyChunk:
    last: ReplyChunk | None = None
    async for chunk in stream_reply(message=message, mode=mode):
        last = chunk
    if last is None:
        return ReplyChunk(text=fallback_reply(message, mode), source="fallback")
    return last
