import httpx
import pytest

from advisor_desk.application.exceptions import ExternalToolError
from advisor_desk.domain.entities.tool_call import (
    EVENT_CREATE_TENTATIVE,
    EVENT_UPDATE_TIME,
    NOTES_APPEND_PREBOOKING,
    idempotency_key,
)
from advisor_desk.infrastructure.tools.http_executor import HttpToolExecutor

PARAMS = {"bookingCode": "NL-A742", "action": "created", "topic": "KYC/Onboarding"}


def _executor(handler) -> HttpToolExecutor:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpToolExecutor(base_url="https://tools.example.com/", api_key="secret", client=client)


def test_request_carries_idempotency_key_and_auth():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "evt_42"})

    result = _executor(handler).execute_tool(EVENT_CREATE_TENTATIVE, PARAMS)

    assert result.success is True
    assert result.data == {"id": "evt_42"}
    request = seen[0]
    assert str(request.url) == "https://tools.example.com/tools/event_create_tentative"
    assert request.headers["Idempotency-Key"] == "event_create_tentative:NL-A742:created"
    assert request.headers["Authorization"] == "Bearer secret"


def test_idempotency_key_needs_a_booking_code():
    assert idempotency_key(NOTES_APPEND_PREBOOKING, {"action": "created"}) is None


def test_each_reschedule_gets_its_own_idempotency_key():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Idempotency-Key"])
        return httpx.Response(200, json={"id": "evt_42"})

    executor = _executor(handler)
    first = {"bookingCode": "NL-A742", "action": "rescheduled", "startDateTime": "2026-10-20T12:30:00+05:30"}
    second = {**first, "startDateTime": "2026-10-20T12:00:00+05:30"}
    for params in (first, second, first):
        assert executor.execute_tool(EVENT_UPDATE_TIME, params).success is True

    assert seen[0] == "event_update_time:NL-A742:rescheduled:2026-10-20T12:30:00+05:30"
    assert seen[0] != seen[1]
    assert seen[2] == seen[0]


def test_client_error_is_a_rejection():
    result = _executor(lambda request: httpx.Response(404, json={"detail": "missing"})).execute_tool(
        EVENT_CREATE_TENTATIVE, PARAMS
    )
    assert result.success is False
    assert result.error_kind == "rejected"


def test_server_error_raises():
    with pytest.raises(ExternalToolError) as excinfo:
        _executor(lambda request: httpx.Response(503)).execute_tool(EVENT_CREATE_TENTATIVE, PARAMS)
    assert excinfo.value.kind == "error"


def test_transport_timeout_raises_timeout_kind():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow gateway", request=request)

    with pytest.raises(ExternalToolError) as excinfo:
        _executor(handler).execute_tool(EVENT_CREATE_TENTATIVE, PARAMS)
    assert excinfo.value.kind == "timeout"


def test_missing_gateway_url_is_rejected(monkeypatch):
    from advisor_desk.core.config import settings

    monkeypatch.setattr(settings, "TOOL_GATEWAY_URL", None)
    with pytest.raises(ValueError):
        HttpToolExecutor(base_url=None, client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
