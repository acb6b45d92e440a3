from pydantic import BaseModel, Field
from typing import Any


class MessageRequestSchema(BaseModel):
    text: str = Field(min_length=1)


class ToolCallSchema(BaseModel):
    name: str
    params: dict[str, Any] = Field(default_factory=dict)


class ToolResultSchema(BaseModel):
    name: str
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    error_kind: str | None = None


class TurnResponseSchema(BaseModel):
    session_id: str
    response: str
    state: str
    intent: str | None = None
    slots: dict[str, Any] = Field(default_factory=dict)
    tool_calls: list[ToolCallSchema] = Field(default_factory=list)
    tool_results: list[ToolResultSchema] = Field(default_factory=list)


class BookingSchema(BaseModel):
    code: str
    topic: str
    slot_start: str
    slot_end: str
    status: str
    is_waitlist: bool
    external_event_ref: str | None = None
