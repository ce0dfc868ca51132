"""Per-kind records narrowed from raw agent results after classification."""

from __future__ import annotations

from typing import Any, TypeAlias

from pydantic import Field

from concierge.broadcast.models import DeliveryReport, WireModel

DEFAULT_CLARIFICATION = "Your query is ambiguous. Please provide more details."


class TimeSlot(WireModel):
    start: str = ""
    end: str = ""
    participants_available: int = 0


class RecommendedSlot(WireModel):
    start: str = ""
    end: str = ""
    reason: str = ""


class SchedulingConflict(WireModel):
    participant: str = ""
    time: str = ""
    reason: str = ""


class ScheduleView(WireModel):
    available_slots: list[TimeSlot] = Field(default_factory=list)
    recommended_slot: RecommendedSlot | None = None
    conflicts: list[SchedulingConflict] = Field(default_factory=list)
    participants_checked: list[str] = Field(default_factory=list)
    alternative_dates: list[str] = Field(default_factory=list)
    scheduling_notes: str = ""


class AnalyticsView(WireModel):
    trends_identified: list[Any] = Field(default_factory=list)
    correlations: list[Any] = Field(default_factory=list)
    hypotheses: list[Any] = Field(default_factory=list)
    what_if_scenarios: list[Any] = Field(default_factory=list)
    anomalies: list[Any] = Field(default_factory=list)
    recommendations: list[Any] = Field(default_factory=list)

    @property
    def has_details(self) -> bool:
        return bool(self.correlations or self.what_if_scenarios)


class DeliveryStatusView(DeliveryReport):
    broadcast_id: str
    delivery_status: str


class ClarificationView(WireModel):
    suggested_clarification: str | None = None
    requires_feedback: bool = False

    @property
    def prompt(self) -> str:
        return self.suggested_clarification or DEFAULT_CLARIFICATION


class AnswerView(WireModel):
    final_answer: str
    follow_up_suggestions: list[str] = Field(default_factory=list)
    confidence_score: float | None = None
    sources: list[Any] = Field(default_factory=list)
    agents_invoked: list[Any] = Field(default_factory=list)
    routing_hops: int | None = None
    conversation_state: str | None = None


class PlainTextView(WireModel):
    text: str


ResponseView: TypeAlias = (
    ScheduleView | AnalyticsView | DeliveryStatusView | ClarificationView | AnswerView | PlainTextView
)
