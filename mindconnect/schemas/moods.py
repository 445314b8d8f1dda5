from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

# Labels offered by the mood picker. Stored and compared as opaque strings.
MOOD_LABELS = ("great", "good", "okay", "low", "struggling")

_DATETIME = TypeAdapter(datetime)


def to_epoch_ms(value: Any) -> Any:
    """Normalize a store timestamp (ISO string, datetime or number) to ms epoch."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)
        # PostgREST trims trailing zeros from fractional seconds.
        value = _DATETIME.validate_python(s)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return value


class LogMoodRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mood: str = Field(min_length=1, max_length=32)
    emoji: str = Field(min_length=1, max_length=16)
    triggers: str | None = Field(default=None, max_length=500)
    note: str | None = Field(default=None, max_length=2000)


class MoodCheckIn(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str | None = None
    user_id: str | None = None
    mood: str
    emoji: str
    triggers: str | None = None
    note: str | None = None
    created_at: int = Field(ge=0, description="Milliseconds since the Unix epoch")

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, value: Any) -> Any:
        return to_epoch_ms(value)


class MoodStreakResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current_streak: int = Field(ge=0)
    longest_streak: int = Field(ge=0)
