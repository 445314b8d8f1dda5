from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from mindconnect.core.config import settings
from mindconnect.core.security import AuthDep
from mindconnect.schemas.moods import LogMoodRequest, MoodCheckIn, MoodStreakResponse
from mindconnect.services.streaks import compute_streaks
from mindconnect.services.supabase_rest import SupabaseRest

router = APIRouter()

_MOOD_FIELDS = "id,user_id,mood,emoji,triggers,note,created_at"
# PostgREST caps a response at its max-rows setting (1000 by default).
_PAGE_SIZE = 1000


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _select_user_moods(
    sb: SupabaseRest, *, bearer_token: str, user_id: str, select: str
) -> list[MoodCheckIn]:
    """Every check-in of ``user_id``, newest first, read page by page."""
    check_ins: list[MoodCheckIn] = []
    offset = 0
    while True:
        rows = await sb.select(
            "moods",
            bearer_token=bearer_token,
            params={
                "select": select,
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc,id.desc",
                "limit": _PAGE_SIZE,
                "offset": offset,
            },
        )
        check_ins.extend(MoodCheckIn.model_validate(r) for r in rows)
        if len(rows) < _PAGE_SIZE:
            return check_ins
        offset += len(rows)


@router.post("/moods", response_model=MoodCheckIn)
async def log_mood(body: LogMoodRequest, auth: AuthDep) -> MoodCheckIn:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    row = await sb.insert_one(
        "moods",
        bearer_token=auth.access_token,
        row={
            "user_id": auth.user_id,
            "mood": body.mood,
            "emoji": body.emoji,
            "triggers": body.triggers,
            "note": body.note,
        },
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save mood",
        )
    return MoodCheckIn.model_validate(row)


@router.get("/moods", response_model=list[MoodCheckIn])
async def get_user_moods(auth: AuthDep) -> list[MoodCheckIn]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    return await _select_user_moods(
        sb,
        bearer_token=auth.access_token,
        user_id=auth.user_id,
        select=_MOOD_FIELDS,
    )


@router.get("/moods/streak", response_model=MoodStreakResponse)
async def get_mood_streak(auth: AuthDep) -> MoodStreakResponse:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    check_ins = await _select_user_moods(
        sb,
        bearer_token=auth.access_token,
        user_id=auth.user_id,
        select="mood,emoji,created_at",
    )
    current_streak, longest_streak = compute_streaks(
        check_ins=check_ins,
        now=_now(),
        tz=settings.streak_tz(),
    )
    return MoodStreakResponse(
        current_streak=current_streak, longest_streak=longest_streak
    )
