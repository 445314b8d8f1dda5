from __future__ import annotations

import logging
import traceback
from typing import Any

from mindconnect.core.config import settings
from mindconnect.services.privacy import redact_secrets_text, sanitize_for_log
from mindconnect.services.supabase_rest import SupabaseRest

logger = logging.getLogger(__name__)

_STACK_LIMIT = 8000


def _stack_of(err: BaseException | None) -> str | None:
    if err is None:
        return None
    lines = traceback.format_exception(type(err), err, err.__traceback__)
    return redact_secrets_text("".join(lines)[-_STACK_LIMIT:])


def build_error_row(
    *,
    route: str,
    message: str,
    user_id: str | None,
    err: BaseException | None,
    meta: dict[str, Any] | None,
) -> dict[str, Any]:
    """Row for ``system_errors``. Student free text never reaches it."""
    details: dict[str, Any] = {"env": settings.app_env, **(meta or {})}
    if err is not None:
        details["error_type"] = type(err).__name__
    return {
        "route": sanitize_for_log(route),
        "message": sanitize_for_log(message),
        "stack": _stack_of(err),
        "user_id": user_id,
        "meta": sanitize_for_log(details),
    }


async def log_system_error(
    *,
    route: str,
    message: str,
    user_id: str | None = None,
    err: BaseException | None = None,
    meta: dict[str, Any] | None = None,
) -> None:
    """Record a server-side failure for the admin error feed.

    Best effort: a failing write is logged locally and never raised, so the
    original error response still reaches the student.
    """
    try:
        row = build_error_row(
            route=route, message=message, user_id=user_id, err=err, meta=meta
        )
        sb = SupabaseRest(str(settings.supabase_url), settings.supabase_service_role_key)
        await sb.insert_one(
            "system_errors", bearer_token=settings.supabase_service_role_key, row=row
        )
    except Exception:
        logger.warning("system_errors write failed for route %s", route, exc_info=True)
