from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PostGratitudeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=500)


class GratitudePostRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    message: str
    likes: int = Field(default=0, ge=0)
    created_at: str | None = None
