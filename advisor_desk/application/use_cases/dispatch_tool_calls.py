from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from advisor_desk.application.exceptions import ExternalToolError
from advisor_desk.application.ports.tool_executor import ToolExecutorPort
from advisor_desk.domain.entities.tool_call import ToolCall, ToolResult


class ToolDispatcher:
    """
    Runs tool calls one after another, each bounded by `timeout_seconds`.

    A failed call never stops the ones after it and never undoes the local
    booking that produced it; failures are reported in the results only.
    """

    def __init__(self, executor: ToolExecutorPort, timeout_seconds: float = 10.0, max_workers: int = 4) -> None:
        self._executor = executor
        self._timeout = timeout_seconds
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tool-call")
        self.logger = logging.getLogger(__name__)

    def dispatch(self, calls: list[ToolCall], booking_code: str | None = None) -> list[ToolResult]:
        return [self._run(call, booking_code) for call in calls]

    def _run(self, call: ToolCall, booking_code: str | None) -> ToolResult:
        future = self._pool.submit(self._executor.execute_tool, call.name, dict(call.params))
        try:
            result = future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            error = ExternalToolError(f"{call.name} timed out after {self._timeout}s", kind="timeout")
        except ExternalToolError as e:
            error = e
        except Exception as e:
            error = ExternalToolError(f"{call.name} failed: {e}", kind="error")
        else:
            if result.success:
                return result
            error = ExternalToolError(result.error or f"{call.name} was rejected", kind=result.error_kind or "rejected")

        self.logger.warning(
            "Tool call failed",
            extra={"tool": call.name, "booking_code": booking_code, "error_kind": error.kind},
        )
        return ToolResult(name=call.name, success=False, data=None, error=str(error), error_kind=error.kind)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False)
