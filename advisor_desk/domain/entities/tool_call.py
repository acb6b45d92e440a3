from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

EVENT_CREATE_TENTATIVE = "event_create_tentative"
EVENT_UPDATE_TIME = "event_update_time"
EVENT_CANCEL = "event_cancel"
CALENDAR_GET_AVAILABILITY = "calendar_get_availability"
EMAIL_CREATE_ADVISOR_DRAFT = "email_create_advisor_draft"
NOTES_APPEND_PREBOOKING = "notes_append_prebooking"


@dataclass(frozen=True)
class ToolCall:
    name: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    name: str
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    error_kind: str | None = None  # "rejected", "timeout", "error"


def idempotency_key(name: str, params: dict[str, Any]) -> str | None:
    """tool:bookingCode:action, plus the target start time when the call carries one."""
    code = params.get("bookingCode")
    if not code:
        return None
    key = f"{name}:{code}:{params.get('action', 'default')}"
    start = params.get("startDateTime")
    if start:
        key = f"{key}:{start}"
    return key
