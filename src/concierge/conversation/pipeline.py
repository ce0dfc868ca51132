"""Two-stage conversation pipeline: normalize intent, then answer."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType

from loguru import logger

from concierge.agents import AgentContext, AgentEnvelope, AgentInvoker, CallResult
from concierge.dispatch import ResponseKind, classify
from concierge.dispatch.classifier import FALLBACK_TEXT
from concierge.errors import PipelineBusyError

from .models import RouterOutcome, Turn, TurnAuthor, new_turn_id, utcnow
from .store import ConversationStore

APOLOGY_TEXT = "Sorry, I encountered an error processing your request."


class PipelineState(StrEnum):
    COMPOSING = "composing"
    ROUTER_CALL = "router_call"
    ANSWER_CALL = "answer_call"
    RESOLVED = "resolved"
    FAILED = "failed"


_IN_FLIGHT = frozenset({PipelineState.ROUTER_CALL, PipelineState.ANSWER_CALL})


@dataclass(frozen=True)
class TurnOutcome:
    """Result of one submission."""

    user_turn: Turn
    agent_turn: Turn
    router: RouterOutcome

    @property
    def failed(self) -> bool:
        return self.agent_turn.failed


class ConversationPipeline:
    """Drives one turn at a time and is the only writer of its store."""

    def __init__(
        self,
        *,
        client: AgentInvoker,
        store: ConversationStore,
        router_agent_id: str,
        orchestrator_agent_id: str,
        context: Callable[[], AgentContext],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._client = client
        self._store = store
        self._router_agent_id = router_agent_id
        self._orchestrator_agent_id = orchestrator_agent_id
        self._context = context
        self._clock = clock
        self._state = PipelineState.COMPOSING
        self._deferred: list[Turn] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state in _IN_FLIGHT

    @property
    def store(self) -> ConversationStore:
        return self._store

    async def submit(self, text: str) -> TurnOutcome | None:
        """Run one turn. Blank input is ignored; input while busy is rejected."""
        stripped = text.strip()
        if not stripped:
            return None
        if self.busy:
            raise PipelineBusyError("a turn is already in flight")

        self._state = PipelineState.ROUTER_CALL
        try:
            user_turn = self._append(Turn(new_turn_id(), TurnAuthor.USER, stripped, self._clock()))
            context = self._context()
            router = await self._route(stripped, context)

            self._state = PipelineState.ANSWER_CALL
            answer = await self._client.invoke(self._orchestrator_agent_id, stripped, context)
            agent_turn = self._resolve(answer, router)
            self._state = PipelineState.FAILED if agent_turn.failed else PipelineState.RESOLVED
        finally:
            if self.busy:
                self._state = PipelineState.FAILED
            self._flush_deferred()
        return TurnOutcome(user_turn=user_turn, agent_turn=agent_turn, router=router)

    def announce(self, envelope: AgentEnvelope, text: str) -> Turn:
        """Append an agent turn that no user submission produced.

        While a turn is in flight the announcement waits until that turn is
        stored so a user turn and its answer stay adjacent.
        """
        turn = self._agent_turn(text, envelope)
        if self.busy:
            self._deferred.append(turn)
            return turn
        return self._append(turn)

    async def _route(self, text: str, context: AgentContext) -> RouterOutcome:
        result = await self._client.invoke(self._router_agent_id, text, context)
        if result.error is not None:
            logger.info("pipeline.router.degraded kind={} detail={}", result.error.kind, result.error.detail)
            return RouterOutcome.degraded()
        if result.envelope is None or not result.envelope.succeeded:
            logger.info("pipeline.router.degraded status={}", result.envelope.status if result.envelope else "")
            return RouterOutcome.degraded()
        outcome = RouterOutcome.from_result(result.envelope.result)
        logger.debug(
            "pipeline.router.done intent={} confidence={} entities={}",
            outcome.normalized_intent,
            outcome.confidence,
            len(outcome.entities),
        )
        return outcome

    def _resolve(self, answer: CallResult, router: RouterOutcome) -> Turn:
        if answer.envelope is None:
            kind = answer.error.kind if answer.error else "unknown"
            logger.warning("pipeline.answer.failed kind={}", kind)
            return self._append(Turn(new_turn_id(), TurnAuthor.AGENT, APOLOGY_TEXT, self._clock(), failed=True))

        turn = self._agent_turn(
            _display_text(answer.envelope),
            answer.envelope,
            confidence=router.confidence,
            intent=router.normalized_intent,
        )
        logger.info("pipeline.turn.resolved kind={} intent={}", turn.kind, turn.intent)
        return self._append(turn)

    def _agent_turn(
        self,
        text: str,
        envelope: AgentEnvelope,
        *,
        confidence: float | None = None,
        intent: str | None = None,
    ) -> Turn:
        kind: ResponseKind = classify(envelope.result)
        return Turn(
            id=new_turn_id(),
            author=TurnAuthor.AGENT,
            text=text,
            created_at=self._clock(),
            kind=kind,
            raw_result=MappingProxyType(dict(envelope.result)),
            confidence=confidence,
            intent=intent,
        )

    def _append(self, turn: Turn) -> Turn:
        return self._store.append(turn)

    def _flush_deferred(self) -> None:
        while self._deferred:
            self._append(self._deferred.pop(0))


def _display_text(envelope: AgentEnvelope) -> str:
    answer = envelope.result.get("final_answer")
    if isinstance(answer, str) and answer.strip():
        return answer
    if envelope.message.strip():
        return envelope.message
    return FALLBACK_TEXT
