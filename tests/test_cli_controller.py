from __future__ import annotations

import io

import pytest
from fakes import COMPOSER, ORCHESTRATOR, ROUTER, SENDER, FakeAgents, FakeClock, fail, ok
from rich.console import Console
from typer.testing import CliRunner

from concierge.cli import app
from concierge.cli.controller import ChatController
from concierge.cli.render import Renderer, confidence_label
from concierge.config import Settings
from concierge.session import Session


def _controller(settings: Settings, agents: FakeAgents, clock: FakeClock) -> tuple[ChatController, Session, io.StringIO]:
    output = io.StringIO()
    renderer = Renderer(Console(file=output, width=200, color_system=None))
    session = Session(settings, agents, session_id="session-cli", clock=clock)
    return ChatController(session, renderer), session, output


@pytest.mark.parametrize(("score", "label"), [(0.95, "High"), (0.8, "High"), (0.5, "Medium"), (0.49, "Low"), (0, "Low")])
def test_confidence_label(score: float, label: str) -> None:
    assert confidence_label(score) == label


@pytest.mark.asyncio
async def test_question_renders_answer_and_suggestions(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    controller, _session, output = _controller(settings, agents, clock)
    agents.script(ROUTER, ok({"intent": "fees", "confidence": 0.9}), ok())
    agents.script(
        ORCHESTRATOR,
        ok({"final_answer": "Fees are due Friday.", "follow_up_suggestions": ["How do I pay?"]}),
        ok({"final_answer": "Pay online."}),
    )

    assert await controller.handle_line("when are fees due?")
    text = output.getvalue()
    assert "You: when are fees due?" in text
    assert "Fees are due Friday." in text
    assert "High (90%)" in text
    assert "1. How do I pay?" in text

    assert await controller.handle_line("/suggest 1")
    assert agents.calls_to(ORCHESTRATOR)[1].text == "How do I pay?"
    assert "Pay online." in output.getvalue()


@pytest.mark.asyncio
async def test_broadcast_commands(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    controller, session, output = _controller(settings, agents, clock)
    agents.script(COMPOSER, fail(), ok({"subject": "Fee Deadline Reminder", "draft_message": "Pay up.", "compliance_check": "passed"}))
    agents.script(SENDER, ok({"broadcast_id": "bc-1", "delivery_status": "completed", "total_recipients": 2, "delivered": 2}))

    await controller.handle_line("/broadcast remind students about fee deadline")
    assert "/retry" in output.getvalue()
    await controller.handle_line("/retry")
    draft = session.broadcasts.pending()[0]
    assert "Fee Deadline Reminder" in output.getvalue()

    await controller.handle_line(f"/approve {draft.id}")
    assert "Broadcast sent successfully!" in output.getvalue()
    assert "Success rate 100.0%" in output.getvalue()

    await controller.handle_line(f"/approve {draft.id}")
    assert "cannot approve" in output.getvalue()

    await controller.handle_line("/drafts")
    assert "Pending Approvals (0)" in output.getvalue()


@pytest.mark.asyncio
async def test_reject_and_unknown_draft(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    controller, session, output = _controller(settings, agents, clock)
    agents.script(COMPOSER, ok({"subject": "Drop me"}))

    await controller.handle_line("/broadcast something")
    draft = session.broadcasts.pending()[0]
    await controller.handle_line(f"/reject {draft.id}")
    await controller.handle_line(f"/reject {draft.id}")

    assert len(session.broadcasts) == 0
    assert f"Rejected {draft.id}" in output.getvalue()
    assert "broadcast not found" in output.getvalue()


@pytest.mark.asyncio
async def test_role_and_quit(settings: Settings, agents: FakeAgents, clock: FakeClock) -> None:
    controller, session, output = _controller(settings, agents, clock)

    assert await controller.handle_line("/role admin")
    assert session.role == "admin"
    assert await controller.handle_line("/role janitor")
    assert "unknown role" in output.getvalue()
    assert not await controller.handle_line("quit")


def test_ask_without_endpoint_exits(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("CONCIERGE_AGENT_ENDPOINT", raising=False)

    result = CliRunner().invoke(app, ["ask", "hello", "--workspace", str(tmp_path)])

    assert result.exit_code == 1
