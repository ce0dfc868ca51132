"""Conversation timeline records."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from concierge.dispatch import ResponseKind, ResponseView, narrow

DEFAULT_INTENT = "general"


class TurnAuthor(StrEnum):
    USER = "user"
    AGENT = "agent"


def new_turn_id() -> str:
    return f"msg-{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Turn:
    """One stored exchange unit. Immutable once appended."""

    id: str
    author: TurnAuthor
    text: str
    created_at: datetime
    kind: ResponseKind | None = None
    raw_result: Mapping[str, Any] | None = None
    confidence: float | None = None
    intent: str | None = None
    failed: bool = False

    def view(self) -> ResponseView | None:
        """Concrete record for the renderer; None for user turns and failures."""
        if self.kind is None:
            return None
        return narrow(self.kind, self.raw_result, message=self.text)


@dataclass(frozen=True)
class Entity:
    kind: str
    value: str


@dataclass(frozen=True)
class RouterOutcome:
    """Semantic router output. Lives for one turn only."""

    normalized_intent: str = DEFAULT_INTENT
    confidence: float = 0.0
    entities: tuple[Entity, ...] = ()
    clarification_needed: bool = False
    clarification_prompt: str | None = None
    normalized_query: str | None = None

    @classmethod
    def degraded(cls) -> RouterOutcome:
        return cls()

    @classmethod
    def from_result(cls, result: Mapping[str, Any]) -> RouterOutcome:
        intent = result.get("intent")
        prompt = result.get("suggested_clarification")
        query = result.get("normalized_query")
        return cls(
            normalized_intent=intent if isinstance(intent, str) and intent.strip() else DEFAULT_INTENT,
            confidence=_confidence(result.get("confidence")),
            entities=_entities(result.get("entities")),
            clarification_needed=bool(result.get("requires_feedback")),
            clarification_prompt=prompt if isinstance(prompt, str) else None,
            normalized_query=query if isinstance(query, str) else None,
        )


def _confidence(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return min(max(float(value), 0.0), 1.0)


def _entities(value: object) -> tuple[Entity, ...]:
    if not isinstance(value, list):
        return ()
    entities: list[Entity] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        kind = item.get("type", item.get("kind"))
        entity_value = item.get("value")
        if kind is None or entity_value is None:
            continue
        entities.append(Entity(kind=str(kind), value=str(entity_value)))
    return tuple(entities)
