from __future__ import annotations

from typing import Any

import httpx

_http: httpx.AsyncClient | None = None


class SupabaseRestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: str | None = None,
        hint: str | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.hint = hint
        self.details = details


def get_http() -> httpx.AsyncClient:
    global _http
    if _http is None:
        _http = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
    return _http


async def close_http() -> None:
    global _http
    if _http is not None:
        await _http.aclose()
        _http = None


def _str_or_none(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None


class SupabaseRest:
    """Thin PostgREST client: every call is one table read or write."""

    def __init__(self, supabase_url: str, api_key: str):
        self._rest_base = supabase_url.rstrip("/") + "/rest/v1"
        self._api_key = api_key

    def _headers(
        self, bearer_token: str, *, prefer: str | None = None
    ) -> dict[str, str]:
        h = {
            "apikey": self._api_key,
            "authorization": f"Bearer {bearer_token}",
            "accept": "application/json",
        }
        if prefer:
            h["prefer"] = prefer
        return h

    def _raise_for_error(self, resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return

        code: str | None = None
        message: str | None = None
        hint: str | None = None
        details: Any | None = None

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            code = _str_or_none(payload, "code")
            message = _str_or_none(payload, "message")
            hint = _str_or_none(payload, "hint")
            details = payload.get("details")
        elif isinstance(payload, str):
            message = payload

        if not message:
            message = resp.text.strip() or None

        raise SupabaseRestError(
            status_code=resp.status_code,
            code=code,
            message=message or f"Supabase request failed ({resp.status_code})",
            hint=hint,
            details=details,
        )

    @staticmethod
    def _as_rows(data: Any) -> list[dict[str, Any]]:
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
        return []

    async def select(
        self,
        table: str,
        *,
        bearer_token: str,
        params: dict[str, Any],
    ) -> list[dict[str, Any]]:
        url = f"{self._rest_base}/{table}"
        resp = await get_http().get(
            url, headers=self._headers(bearer_token), params=params
        )
        self._raise_for_error(resp)
        return self._as_rows(resp.json())

    async def count(
        self,
        table: str,
        *,
        bearer_token: str,
        params: dict[str, Any],
    ) -> int:
        """Exact row count from the Content-Range header (HEAD request)."""
        url = f"{self._rest_base}/{table}"
        resp = await get_http().head(
            url,
            headers=self._headers(bearer_token, prefer="count=exact"),
            params=params,
        )
        self._raise_for_error(resp)
        content_range = resp.headers.get("content-range") or ""
        total = content_range.rsplit("/", 1)[-1]
        return int(total) if total.isdigit() else 0

    async def insert_one(
        self,
        table: str,
        *,
        bearer_token: str,
        row: dict[str, Any],
    ) -> dict[str, Any]:
        url = f"{self._rest_base}/{table}"
        headers = self._headers(bearer_token, prefer="return=representation")
        resp = await get_http().post(url, headers=headers, json=row)
        self._raise_for_error(resp)
        rows = self._as_rows(resp.json())
        return rows[0] if rows else {}

    async def patch(
        self,
        table: str,
        *,
        bearer_token: str,
        params: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows matching ``params``; returns the updated rows (maybe empty)."""
        url = f"{self._rest_base}/{table}"
        headers = self._headers(bearer_token, prefer="return=representation")
        resp = await get_http().patch(url, headers=headers, params=params, json=payload)
        self._raise_for_error(resp)
        return self._as_rows(resp.json())
