from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from mindconnect.core.config import settings
from mindconnect.core.security import AuthDep
from mindconnect.schemas.counselor import CounselorAppointmentRequest, CounselorRequestRow
from mindconnect.services.supabase_rest import SupabaseRest

router = APIRouter()


@router.post("/counselor/requests", response_model=CounselorRequestRow)
async def request_appointment(
    body: CounselorAppointmentRequest, auth: AuthDep
) -> CounselorRequestRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    row = await sb.insert_one(
        "counselor_requests",
        bearer_token=auth.access_token,
        row={
            "user_id": auth.user_id,
            "preferred_time": body.preferred_time,
            "reason": body.reason,
            "is_anonymous": body.is_anonymous,
            "status": "pending",
        },
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to request appointment",
        )
    return CounselorRequestRow.model_validate(row)


@router.get("/counselor/requests", response_model=list[CounselorRequestRow])
async def get_user_requests(auth: AuthDep) -> list[CounselorRequestRow]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    rows = await sb.select(
        "counselor_requests",
        bearer_token=auth.access_token,
        params={
            "select": "id,user_id,preferred_time,reason,is_anonymous,status,created_at",
            "user_id": f"eq.{auth.user_id}",
            "order": "created_at.desc",
        },
    )
    return [CounselorRequestRow.model_validate(r) for r in rows]
