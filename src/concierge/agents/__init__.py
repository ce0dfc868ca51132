from .client import (
    AgentClient,
    AgentContext,
    AgentEnvelope,
    AgentInvoker,
    CallError,
    CallErrorKind,
    CallResult,
)

__all__ = [
    "AgentClient",
    "AgentContext",
    "AgentEnvelope",
    "AgentInvoker",
    "CallError",
    "CallErrorKind",
    "CallResult",
]
