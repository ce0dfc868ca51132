"""Uniform call contract to remote agents."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

import httpx
from loguru import logger

from concierge.types import JSONObject, as_object

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_NEEDS_CLARIFICATION = "needs_clarification"


class CallErrorKind(StrEnum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed-response"
    REMOTE_ERROR = "remote-error"


@dataclass(frozen=True)
class CallError:
    """Why an agent call did not produce an envelope."""

    kind: CallErrorKind
    detail: str
    status_code: int | None = None


@dataclass(frozen=True)
class AgentContext:
    """Pass-through identity values sent along with every call."""

    session_id: str | None = None
    user_id: str | None = None

    def to_payload(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.session_id is not None:
            payload["session_id"] = self.session_id
        if self.user_id is not None:
            payload["user_id"] = self.user_id
        return payload


@dataclass(frozen=True)
class AgentEnvelope:
    """Normalized agent answer. `result` shape depends on the agent."""

    status: str
    message: str
    result: JSONObject

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


@dataclass(frozen=True)
class CallResult:
    """Tagged outcome of one agent call: exactly one of envelope/error is set."""

    envelope: AgentEnvelope | None = None
    error: CallError | None = None

    @property
    def ok(self) -> bool:
        return self.envelope is not None

    @property
    def succeeded(self) -> bool:
        """True when the call went through and the agent reported success."""
        return self.envelope is not None and self.envelope.succeeded

    @classmethod
    def success(cls, envelope: AgentEnvelope) -> CallResult:
        return cls(envelope=envelope)

    @classmethod
    def failure(cls, kind: CallErrorKind, detail: str, *, status_code: int | None = None) -> CallResult:
        return cls(error=CallError(kind=kind, detail=detail, status_code=status_code))


class AgentInvoker(Protocol):
    """Minimal async contract the pipeline and workflow depend on."""

    async def invoke(self, agent_id: str, text: str, context: AgentContext) -> CallResult: ...


class AgentClient:
    """HTTP client for the agent endpoint. Never raises past `invoke`."""

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._owns_client = http_client is None
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._headers = headers
        self._timeout = timeout_seconds
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def __aenter__(self) -> AgentClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        _ = (exc_type, exc, tb)
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def invoke(self, agent_id: str, text: str, context: AgentContext) -> CallResult:
        payload = {"agent_id": agent_id, "message": text, **context.to_payload()}
        start = time.monotonic()
        result = await self._post(payload)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.error is not None:
            logger.warning(
                "agent.call.failed agent={} kind={} elapsed_ms={} detail={}",
                agent_id,
                result.error.kind,
                elapsed_ms,
                result.error.detail,
            )
        else:
            logger.info(
                "agent.call.done agent={} status={} elapsed_ms={}",
                agent_id,
                result.envelope.status if result.envelope else "",
                elapsed_ms,
            )
        return result

    async def _post(self, payload: dict[str, Any]) -> CallResult:
        try:
            response = await self._client.post(
                self._endpoint,
                json=payload,
                headers=self._headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            return CallResult.failure(CallErrorKind.TIMEOUT, f"request timed out after {self._timeout}s: {exc!s}")
        except httpx.HTTPStatusError as exc:
            return CallResult.failure(
                CallErrorKind.REMOTE_ERROR,
                f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            )
        except httpx.HTTPError as exc:
            return CallResult.failure(CallErrorKind.NETWORK, f"{exc!s}")
        except httpx.InvalidURL as exc:
            # Raised while building the request, outside the HTTPError tree.
            return CallResult.failure(CallErrorKind.NETWORK, f"invalid endpoint {self._endpoint!r}: {exc!s}")
        except ValueError as exc:
            return CallResult.failure(CallErrorKind.MALFORMED_RESPONSE, f"invalid JSON body: {exc!s}")
        return parse_envelope(body)


def parse_envelope(body: object) -> CallResult:
    """Normalize a decoded response body into a tagged call result."""

    if not isinstance(body, dict):
        return CallResult.failure(CallErrorKind.MALFORMED_RESPONSE, "response body is not an object")

    response = body.get("response")
    if body.get("success") is not True:
        detail = ""
        if isinstance(response, dict):
            detail = str(response.get("message") or "")
        detail = detail or str(body.get("error") or "agent reported failure")
        return CallResult.failure(CallErrorKind.REMOTE_ERROR, detail)

    if not isinstance(response, dict):
        return CallResult.failure(CallErrorKind.MALFORMED_RESPONSE, "missing 'response' object")
    status = response.get("status")
    if not isinstance(status, str) or not status:
        return CallResult.failure(CallErrorKind.MALFORMED_RESPONSE, "missing 'response.status'")

    message = response.get("message")
    message = message if isinstance(message, str) else ""
    result, leftover = _decode_result(response.get("result"))
    if leftover and not message:
        message = leftover
    return CallResult.success(AgentEnvelope(status=status, message=message, result=result))


def _decode_result(raw: object) -> tuple[JSONObject, str]:
    # Some agents return the structured result as a JSON-encoded string.
    if isinstance(raw, dict):
        return as_object(raw), ""
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            return {}, raw.strip()
        if isinstance(decoded, dict):
            return decoded, ""
        return {}, raw.strip()
    return {}, ""
