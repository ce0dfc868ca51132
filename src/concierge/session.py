"""Session wiring for Concierge."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime

import httpx
from loguru import logger

from .agents import AgentClient, AgentContext, AgentEnvelope, AgentInvoker
from .broadcast import BroadcastDraft, BroadcastStore, BroadcastWorkflow, ComposeResult, DraftHandle, DraftStatus
from .config import Settings, user_id_for
from .conversation import ConversationPipeline, ConversationStore, Turn, TurnOutcome
from .conversation.models import utcnow
from .errors import AgentEndpointNotConfiguredError
from .logging_utils import bind_session

AGENT_ENDPOINT_NOT_CONFIGURED_ERROR = (
    "Agent endpoint not configured. Set CONCIERGE_AGENT_ENDPOINT in your environment or .env file."
)
DELIVERY_ANNOUNCEMENT = "Broadcast sent successfully!"


def new_session_id() -> str:
    return f"session-{int(time.time() * 1000)}"


class Session:
    """One running conversation plus its broadcast collection.

    Renderers read `timeline()` and `drafts()`; every mutation goes through
    the pipeline or the workflow.
    """

    def __init__(
        self,
        settings: Settings,
        client: AgentInvoker,
        *,
        session_id: str | None = None,
        clock: Callable[[], datetime] = utcnow,
        owned_client: AgentClient | None = None,
    ) -> None:
        self.settings = settings
        self.session_id = session_id or new_session_id()
        self._role: str = settings.role
        self._owned_client = owned_client
        self.conversation = ConversationStore()
        self.broadcasts = BroadcastStore()
        self.pipeline = ConversationPipeline(
            client=client,
            store=self.conversation,
            router_agent_id=settings.router_agent_id,
            orchestrator_agent_id=settings.orchestrator_agent_id,
            context=self.context,
            clock=clock,
        )
        self.workflow = BroadcastWorkflow(
            client=client,
            store=self.broadcasts,
            composer_agent_id=settings.composer_agent_id,
            sender_agent_id=settings.sender_agent_id,
            context=self.context,
            clock=clock,
            on_sent=self._announce_delivery,
        )

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        session_id: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> Session:
        if not settings.agent_endpoint:
            raise AgentEndpointNotConfiguredError(AGENT_ENDPOINT_NOT_CONFIGURED_ERROR)
        client = AgentClient(
            settings.agent_endpoint,
            api_key=settings.api_key,
            timeout_seconds=settings.timeout_seconds,
            http_client=http_client,
        )
        session = cls(settings, client, session_id=session_id, owned_client=client)
        bind_session(session.session_id)
        logger.info("session.start id={} role={}", session.session_id, session.role)
        return session

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        _ = (exc_type, exc, tb)
        await self.aclose()

    async def aclose(self) -> None:
        if self._owned_client is not None:
            await self._owned_client.aclose()

    @property
    def role(self) -> str:
        return self._role

    def switch_role(self, role: str) -> None:
        user_id_for(role)
        self._role = role
        logger.info("session.role id={} role={}", self.session_id, role)

    def context(self) -> AgentContext:
        return AgentContext(session_id=self.session_id, user_id=user_id_for(self._role))

    async def submit(self, text: str) -> TurnOutcome | None:
        return await self.pipeline.submit(text)

    async def compose(self, text: str) -> ComposeResult | None:
        return await self.workflow.compose(text)

    async def approve(self, draft_id: str) -> BroadcastDraft:
        return await self.workflow.approve(draft_id)

    def reject(self, draft_id: str) -> BroadcastDraft:
        return self.workflow.reject(draft_id)

    def timeline(self) -> tuple[Turn, ...]:
        return self.conversation.turns

    def drafts(self, *statuses: DraftStatus) -> list[DraftHandle]:
        return self.workflow.handles(*statuses)

    def _announce_delivery(self, draft: BroadcastDraft, envelope: AgentEnvelope) -> None:
        _ = draft
        self.pipeline.announce(envelope, DELIVERY_ANNOUNCEMENT)
