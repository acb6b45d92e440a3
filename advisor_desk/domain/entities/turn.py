from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from advisor_desk.domain.entities.tool_call import ToolCall, ToolResult


@dataclass(frozen=True)
class TurnResult:
    session_id: str
    response: str
    state: str
    intent: str | None
    slots: dict[str, Any]
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
