from .classifier import CLASSIFICATION_RULES, Dispatch, ResponseKind, classify, dispatch, narrow
from .views import (
    AnalyticsView,
    AnswerView,
    ClarificationView,
    DeliveryStatusView,
    PlainTextView,
    ResponseView,
    ScheduleView,
)

__all__ = [
    "CLASSIFICATION_RULES",
    "AnalyticsView",
    "AnswerView",
    "ClarificationView",
    "DeliveryStatusView",
    "Dispatch",
    "PlainTextView",
    "ResponseKind",
    "ResponseView",
    "ScheduleView",
    "classify",
    "dispatch",
    "narrow",
]
