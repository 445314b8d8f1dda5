from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass

from fastapi import HTTPException, status

_MESSAGES = {
    "ip": "Too many requests from this network.",
    "user": "Too many requests for this account.",
    "chat": "The companion needs a moment before the next message.",
}


@dataclass
class Window:
    opened_at: float
    used: int

    def remaining_seconds(self, now: float, length: int) -> int:
        return max(1, math.ceil(self.opened_at + length - now))


_lock = asyncio.Lock()
_counters: dict[tuple[str, str], Window] = {}
_MAX_KEYS = 20_000
_clock = time.monotonic


def _evict_expired(now: float, window_seconds: int) -> None:
    stale = [k for k, w in _counters.items() if now - w.opened_at >= window_seconds]
    for k in stale:
        del _counters[k]


async def consume(*, scope: str, subject: str, limit: int, window_seconds: int) -> None:
    """Count one hit for ``subject`` within ``scope``; 429 once ``limit`` is used up.

    Fixed windows, kept in process memory: every instance of the API counts
    on its own. ``limit <= 0`` disables the check.
    """
    if limit <= 0:
        return

    now = _clock()
    key = (scope, subject)
    async with _lock:
        if len(_counters) >= _MAX_KEYS:
            _evict_expired(now, window_seconds)

        window = _counters.get(key)
        if window is None or now - window.opened_at >= window_seconds:
            _counters[key] = Window(opened_at=now, used=1)
            return

        if window.used >= limit:
            retry_after = window.remaining_seconds(now, window_seconds)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "message": _MESSAGES.get(scope, "Too many requests."),
                    "hint": f"Try again in {retry_after}s.",
                    "code": "RATE_LIMITED",
                },
                headers={"Retry-After": str(retry_after)},
            )

        window.used += 1
