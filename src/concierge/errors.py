"""Application-level exception types for Concierge."""

from __future__ import annotations


class ConciergeError(Exception):
    """Base exception for Concierge."""


class ConfigurationError(ConciergeError):
    """Base exception for configuration and startup validation errors."""


class AgentEndpointNotConfiguredError(ConfigurationError):
    """Raised when no agent endpoint is configured."""


class InvalidRoleError(ConfigurationError):
    """Raised when a user role is not one of the known roles."""


class PipelineBusyError(ConciergeError):
    """Raised when a turn is submitted while another one is still in flight."""


class WorkflowError(ConciergeError):
    """Base exception for broadcast workflow errors."""


class DraftNotFoundError(WorkflowError):
    """Raised when a broadcast id is not in the collection."""

    def __init__(self, draft_id: str) -> None:
        super().__init__(f"broadcast not found: {draft_id}")
        self.draft_id = draft_id


class InvalidStateTransitionError(WorkflowError):
    """Raised when an action fires from a status other than its source status."""

    def __init__(self, draft_id: str, status: str, action: str) -> None:
        super().__init__(f"cannot {action} broadcast {draft_id} in status '{status}'")
        self.draft_id = draft_id
        self.status = status
        self.action = action


class DeliveryIntegrityError(ConciergeError):
    """Raised when delivery figures do not add up to the recipient total."""
