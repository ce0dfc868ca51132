"""Structural classification of agent results.

Agents evolve independently and share no discriminant field, so the shape of a
result is decided by which keys are present. Rules are checked in a fixed
order and the first match wins; a result that satisfies several weak signals
(an orchestrator answer carrying scheduler fields, say) always lands on the
earliest rule. Keep the order stable: renderers map kinds to panels.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias

from loguru import logger
from pydantic import ValidationError

from .views import (
    AnalyticsView,
    AnswerView,
    ClarificationView,
    DeliveryStatusView,
    PlainTextView,
    ResponseView,
    ScheduleView,
)

FALLBACK_TEXT = "I processed your request."

ResultMap: TypeAlias = Mapping[str, Any]


class ResponseKind(StrEnum):
    SCHEDULE = "schedule"
    ANALYTICS = "analytics"
    DELIVERY_STATUS = "delivery_status"
    CLARIFICATION = "clarification"
    CONVERSATIONAL_ANSWER = "conversational_answer"
    PLAIN_TEXT = "plain_text"


@dataclass(frozen=True)
class ClassificationRule:
    kind: ResponseKind
    matches: Callable[[ResultMap], bool]


def _non_empty_list(result: ResultMap, key: str) -> bool:
    value = result.get(key)
    return isinstance(value, list) and len(value) > 0


def _is_schedule(result: ResultMap) -> bool:
    return _non_empty_list(result, "available_slots") or isinstance(result.get("recommended_slot"), Mapping)


def _is_analytics(result: ResultMap) -> bool:
    return any(_non_empty_list(result, key) for key in ("trends_identified", "recommendations", "correlations"))


def _is_delivery_status(result: ResultMap) -> bool:
    return result.get("broadcast_id") is not None and result.get("delivery_status") is not None


def _is_clarification(result: ResultMap) -> bool:
    return bool(result.get("requires_feedback")) or result.get("suggested_clarification") is not None


def _is_answer(result: ResultMap) -> bool:
    answer = result.get("final_answer")
    return isinstance(answer, str) and bool(answer.strip())


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(ResponseKind.SCHEDULE, _is_schedule),
    ClassificationRule(ResponseKind.ANALYTICS, _is_analytics),
    ClassificationRule(ResponseKind.DELIVERY_STATUS, _is_delivery_status),
    ClassificationRule(ResponseKind.CLARIFICATION, _is_clarification),
    ClassificationRule(ResponseKind.CONVERSATIONAL_ANSWER, _is_answer),
)

_VIEW_TYPES: dict[ResponseKind, type[ResponseView]] = {
    ResponseKind.SCHEDULE: ScheduleView,
    ResponseKind.ANALYTICS: AnalyticsView,
    ResponseKind.DELIVERY_STATUS: DeliveryStatusView,
    ResponseKind.CLARIFICATION: ClarificationView,
    ResponseKind.CONVERSATIONAL_ANSWER: AnswerView,
}


def classify(result: ResultMap | None) -> ResponseKind:
    """Return the first kind whose rule matches; PlainText otherwise."""
    if not result:
        return ResponseKind.PLAIN_TEXT
    for rule in CLASSIFICATION_RULES:
        if rule.matches(result):
            return rule.kind
    return ResponseKind.PLAIN_TEXT


def narrow(kind: ResponseKind, result: ResultMap | None, *, message: str = "") -> ResponseView:
    """Build the concrete record for an already classified result.

    A result whose fields cannot be read as the matched kind degrades to
    plain text instead of failing.
    """
    fallback = PlainTextView(text=message or FALLBACK_TEXT)
    view_type = _VIEW_TYPES.get(kind)
    if view_type is None or not result:
        return fallback
    try:
        return view_type.model_validate(dict(result))
    except ValidationError as exc:
        logger.warning("dispatch.narrow.failed kind={} errors={}", kind, exc.error_count())
        return fallback


@dataclass(frozen=True)
class Dispatch:
    kind: ResponseKind
    view: ResponseView


def dispatch(result: ResultMap | None, *, message: str = "") -> Dispatch:
    kind = classify(result)
    return Dispatch(kind=kind, view=narrow(kind, result, message=message))
