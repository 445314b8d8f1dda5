from __future__ import annotations

from fastapi import APIRouter

from mindconnect.core.admin import PolicyDep
from mindconnect.core.security import AuthDep
from mindconnect.schemas.me import MeResponse

router = APIRouter()


@router.get("/me", response_model=MeResponse)
async def get_me(auth: AuthDep, policy: PolicyDep) -> MeResponse:
    return MeResponse(
        user_id=auth.user_id,
        email=auth.email,
        display_name=auth.display_name,
        is_anonymous=auth.is_anonymous,
        is_admin=policy.is_admin(auth),
    )
