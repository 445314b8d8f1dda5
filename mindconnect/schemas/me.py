from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MeResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str
    email: str | None = None
    display_name: str | None = None
    is_anonymous: bool
    is_admin: bool
