from __future__ import annotations

import base64
import json
import os
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Ensure CI can import app settings without a local .env file.
_ENV_DEFAULTS = {
    "APP_ENV": "test",
    "FRONTEND_URL": "http://localhost:5173",
    "SUPABASE_URL": "https://example.supabase.co",
    "SUPABASE_ANON_KEY": "test-anon-key",
    "SUPABASE_SERVICE_ROLE_KEY": "test-service-role-key",
    "ADMIN_EMAILS": "counselor-admin@mindconnect.test, Second-Admin@mindconnect.test",
    "STREAK_TIMEZONE": "UTC",
}
for _key, _value in _ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _value)

import mindconnect.core.rate_limit as rate_limit
import mindconnect.main as main_module
import mindconnect.routes.admin as admin_route
from mindconnect.core.security import AuthContext, verify_token
from mindconnect.main import app
from mindconnect.services.supabase_auth import clear_user_cache
from mindconnect.services.supabase_rest import SupabaseRest

TEST_USER_ID = "00000000-0000-4000-8000-000000000001"
TEST_EMAIL = "pytest-student@mindconnect.test"
ADMIN_USER_ID = "00000000-0000-4000-8000-0000000000ad"
ADMIN_EMAIL = "counselor-admin@mindconnect.test"


def _base64url_json(value: dict[str, Any]) -> str:
    encoded = json.dumps(value, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(encoded).decode("utf-8").rstrip("=")


def build_fake_jwt(*, user_id: str = TEST_USER_ID, email: str = TEST_EMAIL) -> str:
    header = _base64url_json({"alg": "HS256", "typ": "JWT"})
    payload = _base64url_json(
        {
            "sub": user_id,
            "email": email,
            "role": "authenticated",
            "aud": "authenticated",
        }
    )
    signature = "signature-for-tests"
    return f"{header}.{payload}.{signature}"


@pytest.fixture(autouse=True)
def reset_test_state() -> None:
    app.dependency_overrides.clear()
    rate_limit._counters.clear()  # type: ignore[attr-defined]
    clear_user_cache()


@pytest.fixture(autouse=True)
def error_log_mock(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    mock = AsyncMock(return_value=None)
    monkeypatch.setattr(main_module, "log_system_error", mock)
    monkeypatch.setattr(admin_route, "log_system_error", mock)
    monkeypatch.setattr(
        main_module, "_try_get_user_id_from_request", AsyncMock(return_value=None)
    )
    return mock


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fake_jwt_token() -> str:
    return build_fake_jwt()


@pytest.fixture
def auth_headers(fake_jwt_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {fake_jwt_token}"}


@pytest.fixture
def fake_auth_context(fake_jwt_token: str) -> AuthContext:
    return AuthContext(
        user_id=TEST_USER_ID,
        email=TEST_EMAIL,
        is_anonymous=False,
        display_name="Pytest Student",
        access_token=fake_jwt_token,
    )


@pytest.fixture
def admin_auth_context() -> AuthContext:
    return AuthContext(
        user_id=ADMIN_USER_ID,
        email=ADMIN_EMAIL,
        is_anonymous=False,
        display_name="Campus Counselor",
        access_token=build_fake_jwt(user_id=ADMIN_USER_ID, email=ADMIN_EMAIL),
    )


def _override_auth(auth: AuthContext) -> None:
    async def _override_verify_token() -> AuthContext:
        return auth

    app.dependency_overrides[verify_token] = _override_verify_token


@pytest.fixture
def authenticated_client(client: TestClient, fake_auth_context: AuthContext) -> TestClient:
    _override_auth(fake_auth_context)
    return client


@pytest.fixture
def admin_client(client: TestClient, admin_auth_context: AuthContext) -> TestClient:
    _override_auth(admin_auth_context)
    return client


@pytest.fixture
def supabase_mock(monkeypatch: pytest.MonkeyPatch) -> dict[str, AsyncMock]:
    mocks = {
        "select": AsyncMock(return_value=[]),
        "count": AsyncMock(return_value=0),
        "insert_one": AsyncMock(return_value={}),
        "patch": AsyncMock(return_value=[]),
    }

    async def _select(self: SupabaseRest, table: str, *, bearer_token: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        return await mocks["select"](table=table, bearer_token=bearer_token, params=params)

    async def _count(self: SupabaseRest, table: str, *, bearer_token: str, params: dict[str, Any]) -> int:
        return await mocks["count"](table=table, bearer_token=bearer_token, params=params)

    async def _insert_one(
        self: SupabaseRest,
        table: str,
        *,
        bearer_token: str,
        row: dict[str, Any],
    ) -> dict[str, Any]:
        return await mocks["insert_one"](table=table, bearer_token=bearer_token, row=row)

    async def _patch(
        self: SupabaseRest,
        table: str,
        *,
        bearer_token: str,
        params: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        return await mocks["patch"](
            table=table, bearer_token=bearer_token, params=params, payload=payload
        )

    monkeypatch.setattr(SupabaseRest, "select", _select)
    monkeypatch.setattr(SupabaseRest, "count", _count)
    monkeypatch.setattr(SupabaseRest, "insert_one", _insert_one)
    monkeypatch.setattr(SupabaseRest, "patch", _patch)
    return mocks
