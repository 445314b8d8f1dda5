from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from mindconnect.core.config import settings
from mindconnect.routes.admin import router as admin_router
from mindconnect.routes.chat import router as chat_router
from mindconnect.routes.circles import router as circles_router
from mindconnect.routes.counselor import router as counselor_router
from mindconnect.routes.gratitude import router as gratitude_router
from mindconnect.routes.journal import router as journal_router
from mindconnect.routes.me import router as me_router
from mindconnect.routes.moods import router as moods_router
from mindconnect.services.error_log import log_system_error
from mindconnect.services.supabase_auth import get_current_user
from mindconnect.services.supabase_rest import SupabaseRestError, close_http

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await close_http()


app = FastAPI(title="MindConnect API", version="0.1.0", lifespan=lifespan)


def _init_sentry() -> None:
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
        environment=settings.app_env,
    )


_init_sentry()


def _origin(url: str) -> str:
    # FRONTEND_URL may include a trailing slash or a path; CORS compares
    # against scheme+host+port only.
    p = urlparse(url)
    if p.scheme and p.netloc:
        return f"{p.scheme}://{p.netloc}"
    return url.rstrip("/")


_ALLOWED_ORIGINS = sorted(
    {
        _origin(str(settings.frontend_url)),
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    }
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER],
)


def _correlation_id(request: Request) -> str:
    cid = getattr(request.state, "correlation_id", None)
    return cid if isinstance(cid, str) else ""


@app.middleware("http")
async def log_server_error_responses(request: Request, call_next):
    response = await call_next(request)
    if response.status_code >= 500:
        await log_system_error(
            route=str(request.url.path),
            message=f"Server response status {response.status_code}",
            user_id=await _try_get_user_id_from_request(request),
            meta={
                "status_code": response.status_code,
                "method": request.method,
                "path": str(request.url.path),
                "correlation_id": _correlation_id(request),
            },
        )
    return response


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    incoming = (request.headers.get(CORRELATION_HEADER) or "").strip()
    cid = incoming[:128] if incoming else uuid.uuid4().hex
    request.state.correlation_id = cid
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = cid
    return response


@app.get("/health")
async def health() -> dict:
    return {"ok": True}


async def _try_get_user_id_from_request(request: Request) -> str | None:
    auth = request.headers.get("authorization") or ""
    if not auth.lower().startswith("bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    if not token:
        return None
    try:
        user = await get_current_user(access_token=token, use_cache=True)
    except Exception:
        return None
    uid = user.get("id")
    return uid if isinstance(uid, str) and uid.strip() else None


@app.exception_handler(SupabaseRestError)
async def supabase_rest_error_handler(request: Request, exc: SupabaseRestError):
    # Make DB failures debuggable without leaking secrets.
    msg = str(exc) or "Supabase request failed"
    is_rls_write_violation = (
        exc.code == "42501" and "row-level security policy" in msg.lower()
    )

    detail: dict[str, str | None]
    if is_rls_write_violation:
        detail = {
            "message": "The database refused this write (row-level security).",
            "hint": "Check the RLS policies for this table and SUPABASE_SERVICE_ROLE_KEY.",
            "code": exc.code,
        }
        status_code = 503
    else:
        detail = {
            "message": "Database request failed.",
            "hint": exc.hint,
            "code": exc.code,
        }
        # Propagate 4xx; normalize 5xx to 502.
        status_code = exc.status_code if 400 <= exc.status_code < 500 else 502

    await log_system_error(
        route=str(request.url.path),
        message="Supabase request failed",
        user_id=await _try_get_user_id_from_request(request),
        err=exc,
        meta={
            "status_code": exc.status_code,
            "code": exc.code,
            "path": str(request.url.path),
            "correlation_id": _correlation_id(request),
        },
    )
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    cid = _correlation_id(request)
    await log_system_error(
        route=str(request.url.path),
        message="Unhandled server error",
        user_id=await _try_get_user_id_from_request(request),
        err=exc,
        meta={"method": request.method, "correlation_id": cid},
    )
    # Runs outside the http middlewares, so the header is set here.
    headers = {CORRELATION_HEADER: cid} if cid else None
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=headers,
    )


app.include_router(me_router, prefix="/api")
app.include_router(moods_router, prefix="/api")
app.include_router(journal_router, prefix="/api")
app.include_router(gratitude_router, prefix="/api")
app.include_router(counselor_router, prefix="/api")
app.include_router(circles_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
