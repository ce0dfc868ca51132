"""Offline walk-through of a Concierge session.

Runs entirely in-process with a stub invoker standing in for the remote
agents:
1. A question goes through the router and the orchestrator
2. A broadcast is drafted, approved and delivered
3. A second approval of the same draft is refused
"""

from __future__ import annotations

import asyncio

from concierge.agents import AgentContext, AgentEnvelope, CallResult
from concierge.cli.render import Renderer
from concierge.config import Settings
from concierge.errors import InvalidStateTransitionError
from concierge.session import Session

# ============================================================================
# STUB AGENTS
# ============================================================================

REPLIES = {
    "router": {"intent": "fees", "confidence": 0.87, "entities": [{"type": "topic", "value": "fees"}]},
    "orchestrator": {
        "final_answer": "Semester fees are due on Friday, 30 January.",
        "follow_up_suggestions": ["How do I pay online?", "Can I get an extension?"],
    },
    "composer": {
        "subject": "Fee Deadline Reminder",
        "draft_message": "Reminder: semester fees are due this Friday.",
        "audience_filter": {"role": "student"},
        "estimated_recipients": 420,
        "urgency": "high",
        "compliance_check": "passed",
    },
    "sender": {
        "broadcast_id": "bc-2026-001",
        "delivery_status": "completed",
        "total_recipients": 420,
        "delivered": 415,
        "failed": 3,
        "pending": 2,
        "failed_recipients": [{"recipient_id": "stu-118", "reason": "mailbox full", "retry_count": 2}],
    },
}


class StubAgents:
    async def invoke(self, agent_id: str, text: str, context: AgentContext) -> CallResult:
        await asyncio.sleep(0.05)
        return CallResult.success(AgentEnvelope(status="success", message="", result=REPLIES[agent_id]))


# ============================================================================
# WALK-THROUGH
# ============================================================================


async def main() -> None:
    settings = Settings(
        router_agent_id="router",
        orchestrator_agent_id="orchestrator",
        composer_agent_id="composer",
        sender_agent_id="sender",
        role="admin",
        _env_file=None,
    )
    session = Session(settings, StubAgents())
    renderer = Renderer()

    await session.submit("when are fees due?")
    for turn in session.timeline():
        renderer.turn(turn)

    composed = await session.compose("remind students about the fee deadline")
    assert composed is not None and composed.draft is not None
    renderer.draft(composed.draft)

    handle = session.drafts()[0]
    renderer.draft(await handle.approve())
    renderer.turn(session.timeline()[-1])

    try:
        await handle.approve()
    except InvalidStateTransitionError as exc:
        renderer.error(str(exc))


if __name__ == "__main__":
    asyncio.run(main())
