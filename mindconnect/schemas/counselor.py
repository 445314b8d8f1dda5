from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CounselorAppointmentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    preferred_time: str = Field(min_length=1, max_length=120)
    reason: str = Field(min_length=1, max_length=2000)
    is_anonymous: bool = False


class CounselorRequestRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    preferred_time: str
    reason: str
    is_anonymous: bool
    status: str
    created_at: str | None = None
