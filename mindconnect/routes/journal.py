from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from mindconnect.core.config import settings
from mindconnect.core.security import AuthDep
from mindconnect.schemas.journal import CreateJournalEntryRequest, JournalEntryRow
from mindconnect.services.supabase_rest import SupabaseRest

router = APIRouter()

RECENT_ENTRIES_LIMIT = 10


@router.post("/journal", response_model=JournalEntryRow)
async def create_entry(body: CreateJournalEntryRequest, auth: AuthDep) -> JournalEntryRow:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    row = await sb.insert_one(
        "journal_entries",
        bearer_token=auth.access_token,
        row={
            "user_id": auth.user_id,
            "content": body.content,
            "prompt": body.prompt,
        },
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save journal entry",
        )
    return JournalEntryRow.model_validate(row)


@router.get("/journal", response_model=list[JournalEntryRow])
async def get_user_entries(auth: AuthDep) -> list[JournalEntryRow]:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    rows = await sb.select(
        "journal_entries",
        bearer_token=auth.access_token,
        params={
            "select": "id,user_id,content,prompt,created_at",
            "user_id": f"eq.{auth.user_id}",
            "order": "created_at.desc",
            "limit": RECENT_ENTRIES_LIMIT,
        },
    )
    return [JournalEntryRow.model_validate(r) for r in rows]
