import threading
from typing import Any

from advisor_desk.application.exceptions import ExternalToolError
from advisor_desk.application.ports.tool_executor import ToolExecutorPort
from advisor_desk.application.use_cases.dispatch_tool_calls import ToolDispatcher
from advisor_desk.domain.entities.tool_call import (
    EMAIL_CREATE_ADVISOR_DRAFT,
    EVENT_CANCEL,
    EVENT_CREATE_TENTATIVE,
    NOTES_APPEND_PREBOOKING,
    ToolCall,
    ToolResult,
)
from advisor_desk.infrastructure.tools.in_memory_executor import InMemoryToolExecutor


def _create_call(code: str = "NL-A742") -> ToolCall:
    return ToolCall(
        name=EVENT_CREATE_TENTATIVE,
        params={
            "bookingCode": code,
            "action": "created",
            "startDateTime": "2026-10-20T12:00:00+05:30",
            "endDateTime": "2026-10-20T12:30:00+05:30",
        },
    )


class ScriptedExecutor(ToolExecutorPort):
    def __init__(self, behaviour: dict[str, Any]) -> None:
        self.behaviour = behaviour
        self.seen: list[str] = []

    def execute_tool(self, name: str, params: dict[str, Any]) -> ToolResult:
        self.seen.append(name)
        outcome = self.behaviour.get(name)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, ToolResult):
            return outcome
        return ToolResult(name=name, success=True, data={"ok": True})


class BlockingExecutor(ToolExecutorPort):
    def __init__(self) -> None:
        self.release = threading.Event()

    def execute_tool(self, name: str, params: dict[str, Any]) -> ToolResult:
        self.release.wait(timeout=5)
        return ToolResult(name=name, success=True, data={})


def test_successful_calls_pass_through_in_order():
    executor = InMemoryToolExecutor()
    dispatcher = ToolDispatcher(executor)
    calls = [
        _create_call(),
        ToolCall(name=NOTES_APPEND_PREBOOKING, params={"bookingCode": "NL-A742", "action": "created"}),
        ToolCall(name=EMAIL_CREATE_ADVISOR_DRAFT, params={"bookingCode": "NL-A742", "action": "created"}),
    ]
    results = dispatcher.dispatch(calls, booking_code="NL-A742")

    assert [r.name for r in results] == [c.name for c in calls]
    assert all(r.success for r in results)
    assert results[0].data == {"id": "mock_event_1"}
    assert len(executor.audit_rows) == 1


def test_retried_create_upserts_by_booking_code():
    executor = InMemoryToolExecutor()
    dispatcher = ToolDispatcher(executor)
    first = dispatcher.dispatch([_create_call()])[0]
    second = dispatcher.dispatch([_create_call()])[0]

    assert first.data == second.data
    assert len(executor.events) == 1


def test_failure_kinds_are_reported_and_later_calls_still_run():
    executor = ScriptedExecutor(
        {
            EVENT_CREATE_TENTATIVE: ExternalToolError("gateway slow", kind="timeout"),
            NOTES_APPEND_PREBOOKING: RuntimeError("sheet exploded"),
            EVENT_CANCEL: ToolResult(name=EVENT_CANCEL, success=False, error="no such event"),
        }
    )
    dispatcher = ToolDispatcher(executor)
    results = dispatcher.dispatch(
        [
            _create_call(),
            ToolCall(name=NOTES_APPEND_PREBOOKING, params={}),
            ToolCall(name=EVENT_CANCEL, params={}),
            ToolCall(name=EMAIL_CREATE_ADVISOR_DRAFT, params={}),
        ],
        booking_code="NL-A742",
    )

    assert [r.error_kind for r in results] == ["timeout", "error", "rejected", None]
    assert [r.success for r in results] == [False, False, False, True]
    assert executor.seen == [EVENT_CREATE_TENTATIVE, NOTES_APPEND_PREBOOKING, EVENT_CANCEL, EMAIL_CREATE_ADVISOR_DRAFT]


def test_rejected_tool_from_in_memory_executor():
    dispatcher = ToolDispatcher(InMemoryToolExecutor(failing_tools={EVENT_CREATE_TENTATIVE}))
    result = dispatcher.dispatch([_create_call()])[0]
    assert result.success is False
    assert result.error_kind == "rejected"


def test_slow_tool_times_out():
    executor = BlockingExecutor()
    dispatcher = ToolDispatcher(executor, timeout_seconds=0.05)
    try:
        result = dispatcher.dispatch([_create_call()])[0]
    finally:
        executor.release.set()
        dispatcher.shutdown()

    assert result.success is False
    assert result.error_kind == "timeout"
