"""Human-in-the-loop broadcast lifecycle.

    None -> draft -> approved (in flight) -> sent | failed
    draft -> None (rejected, removed from the collection)

Every action checks the exact source status before it fires. `approve` marks
the draft approved before it awaits the sender, so a concurrent approve or
reject on the same draft observes a non-draft status and is refused.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime
from functools import partial
from types import MappingProxyType
from typing import TypeAlias

from loguru import logger
from pydantic import ValidationError

from concierge.agents import AgentContext, AgentEnvelope, AgentInvoker, CallError
from concierge.errors import InvalidStateTransitionError

from .models import BroadcastDraft, BroadcastPayload, DeliveryReport, DraftStatus
from .store import BroadcastStore

SentListener: TypeAlias = Callable[[BroadcastDraft, AgentEnvelope], None]


def new_draft_id() -> str:
    return f"broadcast-{uuid.uuid4().hex}"


def send_instruction(draft: BroadcastDraft) -> str:
    return f"Send approved broadcast {draft.id}: {draft.subject}"


@dataclass(frozen=True)
class ComposeResult:
    """Outcome of one compose call. Failed outcomes keep the submitted text."""

    text: str
    draft: BroadcastDraft | None = None
    error: CallError | None = None
    status: str | None = None

    @property
    def ok(self) -> bool:
        return self.draft is not None


@dataclass(frozen=True)
class DraftHandle:
    """A draft plus the actions a renderer may bind to buttons."""

    draft: BroadcastDraft
    approve: Callable[[], Awaitable[BroadcastDraft]]
    reject: Callable[[], BroadcastDraft]


class BroadcastWorkflow:
    """Compose, approve, reject. The only writer of its store."""

    def __init__(
        self,
        *,
        client: AgentInvoker,
        store: BroadcastStore,
        composer_agent_id: str,
        sender_agent_id: str,
        context: Callable[[], AgentContext],
        clock: Callable[[], datetime],
        on_sent: SentListener | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._composer_agent_id = composer_agent_id
        self._sender_agent_id = sender_agent_id
        self._context = context
        self._clock = clock
        self._on_sent = on_sent
        self._pending_input = ""

    @property
    def store(self) -> BroadcastStore:
        return self._store

    @property
    def pending_input(self) -> str:
        """Text of the last compose that did not produce a draft."""
        return self._pending_input

    async def compose(self, text: str) -> ComposeResult | None:
        stripped = text.strip()
        if not stripped:
            return None
        self._pending_input = stripped

        result = await self._client.invoke(self._composer_agent_id, stripped, self._context())
        if result.error is not None:
            logger.warning("broadcast.compose.failed kind={}", result.error.kind)
            return ComposeResult(text=stripped, error=result.error)
        envelope = result.envelope
        if envelope is None or not envelope.succeeded:
            status = envelope.status if envelope else None
            logger.warning("broadcast.compose.discarded status={}", status)
            return ComposeResult(text=stripped, status=status)

        try:
            payload = BroadcastPayload.model_validate(envelope.result)
        except ValidationError as exc:
            logger.warning("broadcast.compose.invalid errors={}", exc.error_count())
            return ComposeResult(text=stripped, status=envelope.status)

        draft = self._store.add(
            BroadcastDraft(
                id=new_draft_id(),
                payload=payload,
                status=DraftStatus.DRAFT,
                created_at=self._clock(),
                raw_result=MappingProxyType(dict(envelope.result)),
            )
        )
        self._pending_input = ""
        logger.info("broadcast.compose.drafted id={} subject={}", draft.id, draft.subject)
        return ComposeResult(text=stripped, draft=draft, status=envelope.status)

    async def retry_compose(self) -> ComposeResult | None:
        return await self.compose(self._pending_input)

    async def approve(self, draft_id: str) -> BroadcastDraft:
        draft = self._require_draft(draft_id, "approve")
        in_flight = self._store.replace(replace(draft, status=DraftStatus.APPROVED))
        logger.info("broadcast.approve.sending id={}", draft_id)

        try:
            result = await self._client.invoke(self._sender_agent_id, send_instruction(in_flight), self._context())
        except BaseException:
            # approved must never outlive its call
            self._store.replace(replace(in_flight, status=DraftStatus.FAILED))
            raise
        envelope = result.envelope
        if envelope is None or not envelope.succeeded:
            if result.error is not None:
                logger.warning("broadcast.send.failed id={} kind={}", draft_id, result.error.kind)
            else:
                logger.warning("broadcast.send.failed id={} status={}", draft_id, envelope.status if envelope else "")
            return self._store.replace(replace(in_flight, status=DraftStatus.FAILED))

        sent = self._store.replace(
            replace(in_flight, status=DraftStatus.SENT, report=_delivery_report(draft_id, envelope))
        )
        logger.info("broadcast.send.done id={}", draft_id)
        if self._on_sent is not None:
            self._on_sent(sent, envelope)
        return sent

    def reject(self, draft_id: str) -> BroadcastDraft:
        self._require_draft(draft_id, "reject")
        removed = self._store.remove(draft_id)
        logger.info("broadcast.reject id={}", draft_id)
        return removed

    def handles(self, *statuses: DraftStatus) -> list[DraftHandle]:
        return [
            DraftHandle(draft=draft, approve=partial(self.approve, draft.id), reject=partial(self.reject, draft.id))
            for draft in self._store.list(*statuses)
        ]

    def _require_draft(self, draft_id: str, action: str) -> BroadcastDraft:
        draft = self._store.get(draft_id)
        if draft.status is not DraftStatus.DRAFT:
            raise InvalidStateTransitionError(draft_id, draft.status.value, action)
        return draft


def _delivery_report(draft_id: str, envelope: AgentEnvelope) -> DeliveryReport:
    data = dict(envelope.result)
    try:
        report = DeliveryReport.model_validate(data)
    except ValidationError as exc:
        # Unreadable fields fall back to defaults; the rest of the report is kept.
        dropped = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        logger.warning("broadcast.report.invalid id={} dropped={}", draft_id, ",".join(dropped))
        report = DeliveryReport.model_validate({key: value for key, value in data.items() if key not in dropped})
    # Figures are kept as reported; a mismatch is flagged, never reconciled.
    violation = report.integrity_violation
    if violation is not None:
        logger.warning("broadcast.report.integrity id={} {}", draft_id, violation)
    return report
