from __future__ import annotations

import json

import httpx
import pytest
from fakes import COMPOSER, ORCHESTRATOR, ROUTER, SENDER, FakeAgents, FakeClock, ok

from concierge.broadcast import DraftStatus
from concierge.config import Settings
from concierge.conversation import TurnAuthor
from concierge.dispatch import DeliveryStatusView, ResponseKind
from concierge.errors import AgentEndpointNotConfiguredError, InvalidRoleError
from concierge.session import DELIVERY_ANNOUNCEMENT, Session


def _session(settings: Settings, agents: FakeAgents, clock: FakeClock) -> Session:
    return Session(settings, agents, session_id="session-1", clock=clock)


@pytest.mark.asyncio
async def test_context_follows_role_switch(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    session = _session(settings, agents, clock)
    agents.script(ROUTER, ok(), ok())
    agents.script(ORCHESTRATOR, ok({"final_answer": "one"}), ok({"final_answer": "two"}))

    await session.submit("first")
    session.switch_role("principal")
    await session.submit("second")

    users = [call.context.user_id for call in agents.calls_to(ORCHESTRATOR)]
    assert users == ["user-student", "user-principal"]
    assert {call.context.session_id for call in agents.calls} == {"session-1"}


def test_unknown_role_is_rejected(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    session = _session(settings, agents, clock)

    with pytest.raises(InvalidRoleError):
        session.switch_role("janitor")
    assert session.role == "student"


@pytest.mark.asyncio
async def test_sent_broadcast_is_announced_in_timeline(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    session = _session(settings, agents, clock)
    agents.script(COMPOSER, ok({"subject": "Fee Deadline Reminder", "draft_message": "Pay up."}))
    agents.script(
        SENDER,
        ok({"broadcast_id": "bc-9", "delivery_status": "completed", "total_recipients": 3, "delivered": 3}),
    )

    composed = await session.compose("remind students about fee deadline")
    assert composed is not None
    assert composed.draft is not None
    handles = session.drafts(DraftStatus.DRAFT)
    assert [handle.draft.id for handle in handles] == [composed.draft.id]

    await handles[0].approve()

    timeline = session.timeline()
    assert len(timeline) == 1
    announcement = timeline[0]
    assert announcement.author is TurnAuthor.AGENT
    assert announcement.text == DELIVERY_ANNOUNCEMENT
    assert announcement.kind is ResponseKind.DELIVERY_STATUS
    view = announcement.view()
    assert isinstance(view, DeliveryStatusView)
    assert view.broadcast_id == "bc-9"
    assert session.drafts(DraftStatus.DRAFT) == []


def test_build_requires_endpoint() -> None:
    settings = Settings(agent_endpoint=None, _env_file=None)

    with pytest.raises(AgentEndpointNotConfiguredError):
        Session.build(settings)


@pytest.mark.asyncio
async def test_build_session_over_http(settings: Settings) -> None:
    requests: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        if body["agent_id"] == settings.router_agent_id:
            result: dict[str, object] = {"intent": "schedule", "confidence": 0.81}
        else:
            result = {
                "final_answer": "Tuesday works.",
                "recommended_slot": {"start": "2026-01-20T10:00", "end": "2026-01-20T11:00", "reason": "all free"},
            }
        return httpx.Response(200, json={"success": True, "response": {"status": "success", "message": "", "result": result}})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with Session.build(settings, session_id="session-http", http_client=http_client) as session:
        outcome = await session.submit("find a meeting slot with faculty")
    await http_client.aclose()

    assert outcome is not None
    assert outcome.agent_turn.kind is ResponseKind.SCHEDULE
    assert outcome.agent_turn.intent == "schedule"
    assert [body["agent_id"] for body in requests] == [settings.router_agent_id, settings.orchestrator_agent_id]
    assert all(body["session_id"] == "session-http" for body in requests)
