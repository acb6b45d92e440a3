from __future__ import annotations

import itertools
import logging
import threading
from typing import Any

from advisor_desk.application.ports.tool_executor import ToolExecutorPort
from advisor_desk.domain.entities.tool_call import (
    CALENDAR_GET_AVAILABILITY,
    EMAIL_CREATE_ADVISOR_DRAFT,
    EVENT_CANCEL,
    EVENT_CREATE_TENTATIVE,
    EVENT_UPDATE_TIME,
    NOTES_APPEND_PREBOOKING,
    ToolResult,
    idempotency_key,
)


class InMemoryToolExecutor(ToolExecutorPort):
    """
    Simulated calendar, audit sheet and mailbox.

    Calendar events are upserted by bookingCode and email drafts by their
    idempotency key, so a retried call updates the existing record. Names in
    `failing_tools` are rejected, which lets callers exercise the no-rollback path.
    """

    def __init__(self, failing_tools: set[str] | None = None) -> None:
        self.events: dict[str, dict[str, Any]] = {}
        self.audit_rows: list[dict[str, Any]] = []
        self.email_drafts: dict[str, dict[str, Any]] = {}
        self.failing_tools = set(failing_tools or ())
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def execute_tool(self, name: str, params: dict[str, Any]) -> ToolResult:
        if name in self.failing_tools:
            return ToolResult(name=name, success=False, error=f"{name} rejected by mock", error_kind="rejected")

        handler = {
            EVENT_CREATE_TENTATIVE: self._create_event,
            EVENT_UPDATE_TIME: self._update_event,
            EVENT_CANCEL: self._cancel_event,
            CALENDAR_GET_AVAILABILITY: self._get_availability,
            NOTES_APPEND_PREBOOKING: self._append_note,
            EMAIL_CREATE_ADVISOR_DRAFT: self._draft_email,
        }.get(name)
        if handler is None:
            return ToolResult(name=name, success=False, error=f"unknown tool {name}", error_kind="rejected")

        with self._lock:
            data = handler(params)
        if data is None:
            return ToolResult(name=name, success=False, error="no event for booking code", error_kind="rejected")
        self._logger.info("Mock tool executed", extra={"tool": name, "booking_code": params.get("bookingCode")})
        return ToolResult(name=name, success=True, data=data)

    def _create_event(self, params: dict[str, Any]) -> dict[str, Any]:
        code = params["bookingCode"]
        existing = self.events.get(code)
        event_id = existing["id"] if existing else f"mock_event_{next(self._ids)}"
        self.events[code] = {**params, "id": event_id, "status": "tentative"}
        return {"id": event_id}

    def _update_event(self, params: dict[str, Any]) -> dict[str, Any] | None:
        event = self.events.get(params["bookingCode"])
        if event is None:
            return None
        event.update(startDateTime=params.get("startDateTime"), endDateTime=params.get("endDateTime"))
        return {"id": event["id"]}

    def _cancel_event(self, params: dict[str, Any]) -> dict[str, Any] | None:
        event = self.events.get(params["bookingCode"])
        if event is None:
            return None
        event["status"] = "cancelled"
        return {"id": event["id"]}

    def _get_availability(self, params: dict[str, Any]) -> dict[str, Any]:
        busy = [
            {"start": e.get("startDateTime"), "end": e.get("endDateTime")}
            for e in self.events.values()
            if e.get("status") != "cancelled" and not e.get("isWaitlist")
        ]
        return {"busy": busy}

    def _append_note(self, params: dict[str, Any]) -> dict[str, Any]:
        self.audit_rows.append(dict(params))
        return {"row": len(self.audit_rows)}

    def _draft_email(self, params: dict[str, Any]) -> dict[str, Any]:
        key = idempotency_key(EMAIL_CREATE_ADVISOR_DRAFT, params)
        self.email_drafts[key] = dict(params)
        return {"draft_id": key}
