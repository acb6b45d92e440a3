from __future__ import annotations

import logging
from typing import Any

import httpx

from advisor_desk.application.exceptions import ExternalToolError
from advisor_desk.application.ports.tool_executor import ToolExecutorPort
from advisor_desk.core.config import settings
from advisor_desk.domain.entities.tool_call import ToolResult, idempotency_key


class HttpToolExecutor(ToolExecutorPort):
    """
    Posts tool calls to a tool gateway at {base_url}/tools/{name}.

    Each request carries an Idempotency-Key of tool:bookingCode:action[:startDateTime] so
    a retried call is recognised by the gateway instead of creating a duplicate.
    4xx answers are rejections; 5xx and transport failures raise.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.TOOL_GATEWAY_URL or "").rstrip("/")
        self._api_key = api_key or settings.TOOL_GATEWAY_API_KEY
        self._client = client or httpx.Client(timeout=timeout or settings.TOOL_CALL_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("TOOL_GATEWAY_URL is required for the HTTP tool executor")

    def execute_tool(self, name: str, params: dict[str, Any]) -> ToolResult:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        key = idempotency_key(name, params)
        if key:
            headers["Idempotency-Key"] = key

        try:
            response = self._client.post(f"{self._base_url}/tools/{name}", json=params, headers=headers)
        except httpx.TimeoutException as e:
            raise ExternalToolError(f"{name} timed out: {e}", kind="timeout") from e
        except httpx.HTTPError as e:
            raise ExternalToolError(f"{name} transport error: {e}", kind="error") from e

        if response.status_code >= 500:
            raise ExternalToolError(f"{name} gateway error {response.status_code}", kind="error")
        if response.status_code >= 400:
            self._logger.warning(
                "Tool call rejected", extra={"tool": name, "booking_code": params.get("bookingCode")}
            )
            return ToolResult(
                name=name,
                success=False,
                error=f"{name} rejected with status {response.status_code}",
                error_kind="rejected",
            )

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"result": data}
        return ToolResult(name=name, success=True, data=data)
