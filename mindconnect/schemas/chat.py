from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BotMode = Literal["mindful", "boost"]
ReplySource = Literal["gemini", "fallback"]


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=4000)
    mode: BotMode = "mindful"


class ChatResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reply: str
    mode: BotMode
    source: ReplySource
