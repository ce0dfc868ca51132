from __future__ import annotations

import json

import httpx
import pytest

from concierge.agents import AgentClient, AgentContext, CallErrorKind
from concierge.agents.client import parse_envelope


def _client(handler) -> AgentClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AgentClient("http://agents.test/invoke", api_key="secret", timeout_seconds=2, http_client=http_client)


@pytest.mark.asyncio
async def test_invoke_posts_query_and_context() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"success": True, "response": {"status": "success", "message": "hi", "result": {"final_answer": "42"}}},
        )

    client = _client(handler)
    result = await client.invoke("agent-1", "what is it", AgentContext(session_id="s1", user_id="user-student"))

    assert seen["body"] == {"agent_id": "agent-1", "message": "what is it", "session_id": "s1", "user_id": "user-student"}
    assert seen["auth"] == "Bearer secret"
    assert result.ok
    assert result.succeeded
    assert result.envelope is not None
    assert result.envelope.message == "hi"
    assert result.envelope.result == {"final_answer": "42"}


@pytest.mark.asyncio
async def test_timeout_becomes_call_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    result = await _client(handler).invoke("agent-1", "q", AgentContext())

    assert not result.ok
    assert result.error is not None
    assert result.error.kind is CallErrorKind.TIMEOUT


@pytest.mark.asyncio
async def test_connection_failure_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    result = await _client(handler).invoke("agent-1", "q", AgentContext())

    assert result.error is not None
    assert result.error.kind is CallErrorKind.NETWORK


@pytest.mark.asyncio
async def test_non_2xx_becomes_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    result = await _client(handler).invoke("agent-1", "q", AgentContext())

    assert result.error is not None
    assert result.error.kind is CallErrorKind.REMOTE_ERROR
    assert result.error.status_code == 502


@pytest.mark.asyncio
async def test_non_json_body_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    result = await _client(handler).invoke("agent-1", "q", AgentContext())

    assert result.error is not None
    assert result.error.kind is CallErrorKind.MALFORMED_RESPONSE


@pytest.mark.asyncio
async def test_unparseable_endpoint_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request should not be sent")

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = AgentClient("http://[::1/invoke", http_client=http_client)

    result = await client.invoke("agent-1", "hi", AgentContext())

    assert not result.ok
    assert result.error is not None
    assert result.error.kind is CallErrorKind.NETWORK
    assert "[::1/invoke" in result.error.detail


@pytest.mark.asyncio
async def test_json_list_body_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"success": True}])

    result = await _client(handler).invoke("agent-1", "q", AgentContext())

    assert result.error is not None
    assert result.error.kind is CallErrorKind.MALFORMED_RESPONSE


@pytest.mark.asyncio
async def test_json_scalar_body_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json="ok")

    result = await _client(handler).invoke("agent-1", "q", AgentContext())

    assert result.error is not None
    assert result.error.kind is CallErrorKind.MALFORMED_RESPONSE


def test_parse_envelope_rejects_missing_status() -> None:
    result = parse_envelope({"success": True, "response": {"message": "x"}})

    assert result.error is not None
    assert result.error.kind is CallErrorKind.MALFORMED_RESPONSE


def test_parse_envelope_reports_agent_failure_as_remote_error() -> None:
    result = parse_envelope({"success": False, "response": {"status": "error", "message": "agent down"}})

    assert result.error is not None
    assert result.error.kind is CallErrorKind.REMOTE_ERROR
    assert result.error.detail == "agent down"


def test_parse_envelope_decodes_string_result() -> None:
    encoded = json.dumps({"available_slots": [{"start": "a", "end": "b"}]})
    result = parse_envelope({"success": True, "response": {"status": "success", "result": encoded}})

    assert result.envelope is not None
    assert result.envelope.result["available_slots"][0]["start"] == "a"


def test_parse_envelope_keeps_plain_string_result_as_message() -> None:
    result = parse_envelope({"success": True, "response": {"status": "success", "result": "just text"}})

    assert result.envelope is not None
    assert result.envelope.result == {}
    assert result.envelope.message == "just text"


def test_context_payload_omits_unset_fields() -> None:
    assert AgentContext(user_id="user-admin").to_payload() == {"user_id": "user-admin"}
