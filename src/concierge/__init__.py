"""Concierge - route questions through agents, approve broadcasts before they go out."""

from .agents import AgentClient, AgentContext
from .dispatch import ResponseKind, classify
from .session import Session

__version__ = "0.1.0"

__all__ = ["AgentClient", "AgentContext", "ResponseKind", "Session", "classify"]
