"""Broadcast drafts and delivery reports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from concierge.errors import DeliveryIntegrityError


class DraftStatus(StrEnum):
    DRAFT = "draft"
    APPROVED = "approved"
    SENT = "sent"
    FAILED = "failed"


class WireModel(BaseModel):
    """Lenient model for agent payloads: unknown keys ignored, nulls fall back to defaults, numbers accepted as text."""

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class AudienceFilter(WireModel):
    role: str = "all"


class BroadcastPayload(WireModel):
    """What the composer produced for human review."""

    subject: str = ""
    draft_message: str = ""
    audience_filter: AudienceFilter = Field(default_factory=AudienceFilter)
    estimated_recipients: int = 0
    urgency: str = "normal"
    compliance_check: str = "unknown"
    scheduled_time: str | None = None
    preview_text: str | None = None
    approval_card_id: str | None = None

    @property
    def compliance_passed(self) -> bool:
        return self.compliance_check == "passed"


class FailedRecipient(WireModel):
    recipient_id: str = ""
    reason: str = ""
    retry_count: int = 0


class DeliveryReport(WireModel):
    """Delivery figures reported once by the sender; never revised."""

    total_recipients: int = 0
    delivered: int = 0
    failed: int = 0
    pending: int = 0
    failed_recipients: list[FailedRecipient] = Field(default_factory=list)
    delivery_start_time: datetime | None = None
    delivery_end_time: datetime | None = None
    broadcast_id: str | None = None
    delivery_status: str | None = None
    log_entry_id: str | None = None
    retry_scheduled: bool = False

    @property
    def accounted(self) -> int:
        return self.delivered + self.failed + self.pending

    @property
    def integrity_violation(self) -> str | None:
        """Describe the mismatch when the figures do not sum to the total."""
        if self.accounted == self.total_recipients:
            return None
        return (
            f"delivered({self.delivered}) + failed({self.failed}) + pending({self.pending}) "
            f"= {self.accounted}, expected total_recipients={self.total_recipients}"
        )

    def check_integrity(self) -> None:
        violation = self.integrity_violation
        if violation is not None:
            raise DeliveryIntegrityError(violation)

    @property
    def success_rate(self) -> float:
        if self.total_recipients <= 0:
            return 0.0
        return self.delivered / self.total_recipients * 100


@dataclass(frozen=True)
class BroadcastDraft:
    """One broadcast in the collection. Replaced by id, never edited in place."""

    id: str
    payload: BroadcastPayload
    status: DraftStatus
    created_at: datetime
    report: DeliveryReport | None = None
    raw_result: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def subject(self) -> str:
        return self.payload.subject
