from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from mindconnect.core.admin import AdminDep
from mindconnect.core.config import settings
from mindconnect.routes.circles import CIRCLE_REQUEST_FIELDS
from mindconnect.schemas.circles import (
    CircleRequestRow,
    CircleRequestStatus,
    PendingCountResponse,
    RejectCircleRequest,
)
from mindconnect.services.error_log import log_system_error
from mindconnect.services.supabase_rest import SupabaseRest, SupabaseRestError

router = APIRouter()


def _service_client() -> SupabaseRest:
    return SupabaseRest(str(settings.supabase_url), settings.supabase_service_role_key)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _get_pending_request(sb: SupabaseRest, request_id: str) -> dict[str, Any]:
    rows = await sb.select(
        "circle_requests",
        bearer_token=settings.supabase_service_role_key,
        params={"select": CIRCLE_REQUEST_FIELDS, "id": f"eq.{request_id}", "limit": 1},
    )
    if not rows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Request not found"
        )
    if rows[0].get("status") != "pending":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Request already {rows[0].get('status')}",
        )
    return rows[0]


async def _review_request(
    sb: SupabaseRest, request_id: str, payload: dict[str, Any]
) -> dict[str, Any]:
    # Filtering on status=pending makes the transition one-way even when two
    # admins review the same request at once.
    updated = await sb.patch(
        "circle_requests",
        bearer_token=settings.supabase_service_role_key,
        params={
            "id": f"eq.{request_id}",
            "status": "eq.pending",
            "select": CIRCLE_REQUEST_FIELDS,
        },
        payload=payload,
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Request already reviewed"
        )
    return updated[0]


async def _deactivate_circle(sb: SupabaseRest, circle_id: str) -> None:
    await sb.patch(
        "support_circles",
        bearer_token=settings.supabase_service_role_key,
        params={"id": f"eq.{circle_id}"},
        payload={"is_active": False},
    )


@router.get("/admin/circle-requests", response_model=list[CircleRequestRow])
async def get_all_circle_requests(
    _: AdminDep,
    status_filter: CircleRequestStatus | None = Query(default=None, alias="status"),
) -> list[CircleRequestRow]:
    params: dict[str, Any] = {
        "select": CIRCLE_REQUEST_FIELDS,
        "order": "created_at.desc",
        "limit": 500,
    }
    if status_filter is not None:
        params["status"] = f"eq.{status_filter}"
    rows = await _service_client().select(
        "circle_requests",
        bearer_token=settings.supabase_service_role_key,
        params=params,
    )
    return [CircleRequestRow.model_validate(r) for r in rows]


@router.get("/admin/circle-requests/pending-count", response_model=PendingCountResponse)
async def get_pending_requests_count(_: AdminDep) -> PendingCountResponse:
    count = await _service_client().count(
        "circle_requests",
        bearer_token=settings.supabase_service_role_key,
        params={"status": "eq.pending"},
    )
    return PendingCountResponse(count=count)


@router.post("/admin/circle-requests/{request_id}/approve", response_model=CircleRequestRow)
async def approve_circle_request(request_id: str, auth: AdminDep) -> CircleRequestRow:
    sb = _service_client()
    request_row = await _get_pending_request(sb, request_id)

    # The circle exists before the request leaves `pending`; a failed insert
    # leaves the request reviewable.
    circle = await sb.insert_one(
        "support_circles",
        bearer_token=settings.supabase_service_role_key,
        row={
            "name": request_row["name"],
            "description": request_row["description"],
            "theme": request_row["theme"],
            "created_by": request_row["user_id"],
            "is_active": True,
        },
    )
    circle_id = circle.get("id")
    if not isinstance(circle_id, str):
        await log_system_error(
            route="/api/admin/circle-requests/approve",
            message="Circle insert returned no id",
            user_id=auth.user_id,
            meta={"request_id": request_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create circle",
        )

    try:
        reviewed = await _review_request(
            sb,
            request_id,
            {
                "status": "approved",
                "reviewed_by": auth.user_id,
                "reviewed_at": _now_iso(),
                "circle_id": circle_id,
            },
        )
    except (HTTPException, SupabaseRestError):
        await _deactivate_circle(sb, circle_id)
        raise
    return CircleRequestRow.model_validate(reviewed)


@router.post("/admin/circle-requests/{request_id}/reject", response_model=CircleRequestRow)
async def reject_circle_request(
    request_id: str, body: RejectCircleRequest, auth: AdminDep
) -> CircleRequestRow:
    sb = _service_client()
    await _get_pending_request(sb, request_id)
    reviewed = await _review_request(
        sb,
        request_id,
        {
            "status": "rejected",
            "rejection_reason": body.reason,
            "reviewed_by": auth.user_id,
            "reviewed_at": _now_iso(),
        },
    )
    return CircleRequestRow.model_validate(reviewed)


@router.get("/admin/errors")
async def admin_errors(_: AdminDep) -> dict:
    rows = await _service_client().select(
        "system_errors",
        bearer_token=settings.supabase_service_role_key,
        params={
            "select": "id,created_at,route,message,user_id,meta",
            "order": "created_at.desc",
            "limit": 50,
        },
    )
    return {"errors": rows}
