from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CircleRequestStatus = Literal["pending", "approved", "rejected"]


class CircleDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=80)
    description: str = Field(min_length=1, max_length=1000)
    theme: str = Field(min_length=1, max_length=60)


class SupportCircleRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: str
    theme: str
    created_by: str
    is_active: bool
    created_at: str | None = None


class SendCircleMessageRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=2000)
    anonymous_name: str = Field(min_length=1, max_length=40)

    @field_validator("message", "anonymous_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CircleMessageRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    circle_id: str
    message: str
    anonymous_name: str
    is_flagged: bool = False
    created_at: str | None = None


class CircleRequestRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    user_name: str | None = None
    user_email: str | None = None
    name: str
    description: str
    theme: str
    status: CircleRequestStatus
    rejection_reason: str | None = None
    reviewed_by: str | None = None
    reviewed_at: str | None = None
    circle_id: str | None = None
    created_at: str | None = None


class RejectCircleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Please provide a rejection reason")
        return stripped


class PendingCountResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int = Field(ge=0)
