from abc import ABC, abstractmethod
from typing import Any

from advisor_desk.domain.entities.tool_call import ToolResult


class ToolExecutorPort(ABC):
    @abstractmethod
    def execute_tool(self, name: str, params: dict[str, Any]) -> ToolResult:
        """
        Execute one side-effecting tool call.

        Calendar and email tools are keyed by params["bookingCode"] so that a
        retried call updates the same external record instead of duplicating it.
        Explicit rejections are returned as ToolResult(success=False); transport
        failures may raise.
        """
        raise NotImplementedError
