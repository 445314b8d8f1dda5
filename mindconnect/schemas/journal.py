from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateJournalEntryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str = Field(min_length=1, max_length=10000)
    prompt: str | None = Field(default=None, max_length=500)


class JournalEntryRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    content: str
    prompt: str | None = None
    created_at: str | None = None
