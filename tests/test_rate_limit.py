from __future__ import annotations

import pytest
from fastapi import HTTPException

import mindconnect.core.rate_limit as rate_limit


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    now = [1000.0]
    monkeypatch.setattr(rate_limit, "_clock", lambda: now[0])
    return now


@pytest.mark.asyncio
async def test_limit_blocks_with_retry_after(clock: list[float]) -> None:
    for _ in range(2):
        await rate_limit.consume(scope="chat", subject="u1", limit=2, window_seconds=60)

    clock[0] += 15
    with pytest.raises(HTTPException) as exc_info:
        await rate_limit.consume(scope="chat", subject="u1", limit=2, window_seconds=60)

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers == {"Retry-After": "45"}
    assert exc_info.value.detail["code"] == "RATE_LIMITED"


@pytest.mark.asyncio
async def test_window_reopens_after_it_expires(clock: list[float]) -> None:
    await rate_limit.consume(scope="chat", subject="u1", limit=1, window_seconds=60)

    clock[0] += 60
    await rate_limit.consume(scope="chat", subject="u1", limit=1, window_seconds=60)


@pytest.mark.asyncio
async def test_scopes_and_subjects_count_separately(clock: list[float]) -> None:
    await rate_limit.consume(scope="chat", subject="u1", limit=1, window_seconds=60)
    await rate_limit.consume(scope="user", subject="u1", limit=1, window_seconds=60)
    await rate_limit.consume(scope="chat", subject="u2", limit=1, window_seconds=60)


@pytest.mark.asyncio
async def test_zero_limit_disables_the_check(clock: list[float]) -> None:
    for _ in range(5):
        await rate_limit.consume(scope="ip", subject="10.0.0.1", limit=0, window_seconds=60)

    assert rate_limit._counters == {}
