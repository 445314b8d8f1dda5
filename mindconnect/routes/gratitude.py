from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from mindconnect.core.config import settings
from mindconnect.core.security import AuthDep
from mindconnect.schemas.gratitude import GratitudePostRow, PostGratitudeRequest
from mindconnect.services.supabase_rest import SupabaseRest

router = APIRouter()

WALL_LIMIT = 20
_POST_FIELDS = "id,user_id,message,likes,created_at"


@router.post("/gratitude", response_model=GratitudePostRow)
async def post_gratitude(body: PostGratitudeRequest, auth: AuthDep) -> GratitudePostRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    row = await sb.insert_one(
        "gratitude_posts",
        bearer_token=auth.access_token,
        row={"user_id": auth.user_id, "message": body.message, "likes": 0},
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to post gratitude",
        )
    return GratitudePostRow.model_validate(row)


@router.get("/gratitude", response_model=list[GratitudePostRow])
async def get_gratitude_posts(auth: AuthDep) -> list[GratitudePostRow]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    rows = await sb.select(
        "gratitude_posts",
        bearer_token=auth.access_token,
        params={
            "select": _POST_FIELDS,
            "order": "created_at.desc",
            "limit": WALL_LIMIT,
        },
    )
    return [GratitudePostRow.model_validate(r) for r in rows]


@router.post("/gratitude/{post_id}/like", response_model=GratitudePostRow)
async def like_gratitude(post_id: str, auth: AuthDep) -> GratitudePostRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    rows = await sb.select(
        "gratitude_posts",
        bearer_token=auth.access_token,
        params={"select": "id,likes", "id": f"eq.{post_id}", "limit": 1},
    )
    if not rows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
        )

    likes = rows[0].get("likes")
    current = likes if isinstance(likes, int) and likes >= 0 else 0
    # Likes on other users' posts are a server-side write.
    admin_sb = SupabaseRest(
        str(settings.supabase_url), settings.supabase_service_role_key
    )
    updated = await admin_sb.patch(
        "gratitude_posts",
        bearer_token=settings.supabase_service_role_key,
        params={"id": f"eq.{post_id}", "select": _POST_FIELDS},
        payload={"likes": current + 1},
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
        )
    return GratitudePostRow.model_validate(updated[0])
