from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from mindconnect.core.admin import AdminDep
from mindconnect.core.config import settings
from mindconnect.core.security import AuthDep
from mindconnect.schemas.circles import (
    CircleDefinition,
    CircleMessageRow,
    CircleRequestRow,
    SendCircleMessageRequest,
    SupportCircleRow,
)
from mindconnect.services.supabase_rest import SupabaseRest

router = APIRouter()

MESSAGES_LIMIT = 50
CIRCLE_FIELDS = "id,name,description,theme,created_by,is_active,created_at"
CIRCLE_REQUEST_FIELDS = (
    "id,user_id,user_name,user_email,name,description,theme,status,"
    "rejection_reason,reviewed_by,reviewed_at,circle_id,created_at"
)


@router.post("/circles", response_model=SupportCircleRow)
async def create_circle(body: CircleDefinition, auth: AdminDep) -> SupportCircleRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_service_role_key)
    row = await sb.insert_one(
        "support_circles",
        bearer_token=settings.supabase_service_role_key,
        row={**body.model_dump(), "created_by": auth.user_id, "is_active": True},
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create circle",
        )
    return SupportCircleRow.model_validate(row)


@router.get("/circles", response_model=list[SupportCircleRow])
async def get_circles(auth: AuthDep) -> list[SupportCircleRow]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    rows = await sb.select(
        "support_circles",
        bearer_token=auth.access_token,
        params={"select": CIRCLE_FIELDS, "is_active": "eq.true"},
    )
    return [SupportCircleRow.model_validate(r) for r in rows]


async def _require_active_circle(
    sb: SupabaseRest, *, bearer_token: str, circle_id: str
) -> None:
    rows = await sb.select(
        "support_circles",
        bearer_token=bearer_token,
        params={
            "select": "id",
            "id": f"eq.{circle_id}",
            "is_active": "eq.true",
            "limit": 1,
        },
    )
    if not rows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Circle not found"
        )


@router.post("/circles/{circle_id}/messages", response_model=CircleMessageRow)
async def send_message(
    circle_id: str, body: SendCircleMessageRequest, auth: AuthDep
) -> CircleMessageRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    await _require_active_circle(sb, bearer_token=auth.access_token, circle_id=circle_id)
    row = await sb.insert_one(
        "circle_messages",
        bearer_token=auth.access_token,
        row={
            "circle_id": circle_id,
            "user_id": auth.user_id,
            "message": body.message,
            "anonymous_name": body.anonymous_name.strip(),
            "is_flagged": False,
        },
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message",
        )
    return CircleMessageRow.model_validate(row)


@router.get("/circles/{circle_id}/messages", response_model=list[CircleMessageRow])
async def get_circle_messages(circle_id: str, auth: AuthDep) -> list[CircleMessageRow]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    # Members only ever see the anonymous name, never user_id.
    rows = await sb.select(
        "circle_messages",
        bearer_token=auth.access_token,
        params={
            "select": "id,circle_id,message,anonymous_name,is_flagged,created_at",
            "circle_id": f"eq.{circle_id}",
            "order": "created_at.desc",
            "limit": MESSAGES_LIMIT,
        },
    )
    return [CircleMessageRow.model_validate(r) for r in rows]


@router.post("/circles/requests", response_model=CircleRequestRow)
async def request_circle(body: CircleDefinition, auth: AuthDep) -> CircleRequestRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    row = await sb.insert_one(
        "circle_requests",
        bearer_token=auth.access_token,
        row={
            **body.model_dump(),
            "user_id": auth.user_id,
            "user_name": auth.display_name,
            "user_email": auth.email,
            "status": "pending",
        },
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit circle request",
        )
    return CircleRequestRow.model_validate(row)


@router.get("/circles/requests/mine", response_model=list[CircleRequestRow])
async def get_my_circle_requests(auth: AuthDep) -> list[CircleRequestRow]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    rows = await sb.select(
        "circle_requests",
        bearer_token=auth.access_token,
        params={
            "select": CIRCLE_REQUEST_FIELDS,
            "user_id": f"eq.{auth.user_id}",
            "order": "created_at.desc",
        },
    )
    return [CircleRequestRow.model_validate(r) for r in rows]
