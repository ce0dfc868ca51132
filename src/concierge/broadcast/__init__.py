from .models import BroadcastDraft, BroadcastPayload, DeliveryReport, DraftStatus, FailedRecipient
from .store import BroadcastStore
from .workflow import BroadcastWorkflow, ComposeResult, DraftHandle

__all__ = [
    "BroadcastDraft",
    "BroadcastPayload",
    "BroadcastStore",
    "BroadcastWorkflow",
    "ComposeResult",
    "DeliveryReport",
    "DraftHandle",
    "DraftStatus",
    "FailedRecipient",
]
