from __future__ import annotations

import httpx
import pytest

from mindconnect.services.supabase_rest import SupabaseRest, SupabaseRestError


def _response(
    status_code: int, *, json_body=None, text: str = "error", headers=None
) -> httpx.Response:
    req = httpx.Request("GET", "https://example.supabase.co/rest/v1/test")
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=req, headers=headers)
    return httpx.Response(status_code, text=text, request=req, headers=headers)


def test_raise_for_error_extracts_supabase_payload() -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")
    resp = _response(
        403,
        json_body={
            "code": "42501",
            "message": "row-level security policy",
            "hint": "check policy",
            "details": {"table": "moods"},
        },
    )

    with pytest.raises(SupabaseRestError) as exc:
        sb._raise_for_error(resp)

    assert exc.value.status_code == 403
    assert exc.value.code == "42501"
    assert exc.value.hint == "check policy"
    assert "row-level security policy" in str(exc.value)


def test_raise_for_error_uses_text_when_json_missing() -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")
    resp = _response(500, text="upstream failure")

    with pytest.raises(SupabaseRestError) as exc:
        sb._raise_for_error(resp)

    assert exc.value.status_code == 500
    assert str(exc.value) == "upstream failure"


@pytest.mark.asyncio
async def test_select_wraps_single_object_as_list(monkeypatch: pytest.MonkeyPatch) -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")

    class _Client:
        async def get(self, *args, **kwargs):
            return _response(200, json_body={"id": "one"})

    monkeypatch.setattr("mindconnect.services.supabase_rest.get_http", lambda: _Client())

    rows = await sb.select(
        "moods",
        bearer_token="token",
        params={"select": "id"},
    )
    assert rows == [{"id": "one"}]


@pytest.mark.asyncio
async def test_patch_sends_filters_and_returns_rows(monkeypatch: pytest.MonkeyPatch) -> None:
    sb = SupabaseRest("https://example.supabase.co/", "anon")
    seen: dict = {}

    class _Client:
        async def patch(self, url, *, headers, params, json):
            seen.update(url=url, headers=headers, params=params, json=json)
            return _response(200, json_body=[{"id": "g-1", "likes": 2}])

    monkeypatch.setattr("mindconnect.services.supabase_rest.get_http", lambda: _Client())

    rows = await sb.patch(
        "gratitude_posts",
        bearer_token="token",
        params={"id": "eq.g-1"},
        payload={"likes": 2},
    )

    assert rows == [{"id": "g-1", "likes": 2}]
    assert seen["url"] == "https://example.supabase.co/rest/v1/gratitude_posts"
    assert seen["headers"]["prefer"] == "return=representation"
    assert seen["headers"]["authorization"] == "Bearer token"
    assert seen["json"] == {"likes": 2}


@pytest.mark.asyncio
async def test_count_reads_content_range(monkeypatch: pytest.MonkeyPatch) -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")

    class _Client:
        async def head(self, url, *, headers, params):
            assert headers["prefer"] == "count=exact"
            return _response(200, text="", headers={"content-range": "0-2/7"})

    monkeypatch.setattr("mindconnect.services.supabase_rest.get_http", lambda: _Client())

    total = await sb.count(
        "circle_requests", bearer_token="token", params={"status": "eq.pending"}
    )
    assert total == 7
