"""Configuration management for Concierge."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, get_args

from pydantic import Field
from pydantic_settings import BaseSettings

from .errors import InvalidRoleError

UserRole = Literal["student", "faculty", "admin", "principal"]
USER_ROLES: tuple[str, ...] = get_args(UserRole)


class Settings(BaseSettings):
    """Application settings."""

    # Transport
    agent_endpoint: Optional[str] = Field(None, description="URL that agent invocations are POSTed to")
    api_key: Optional[str] = Field(None, description="Bearer token for the agent endpoint")
    timeout_seconds: float = Field(default=30.0, description="Timeout for one agent call in seconds")

    # Agent identifiers
    router_agent_id: str = Field(default="696e415ee1e4c42b224b252d", description="Semantic router agent")
    orchestrator_agent_id: str = Field(default="696e4142c3a33af8ef0633c3", description="Orchestrator agent")
    composer_agent_id: str = Field(default="696e4179e1e4c42b224b2534", description="Broadcast composer agent")
    sender_agent_id: str = Field(default="696e4197e1e4c42b224b2535", description="Broadcast sender agent")

    # Session
    role: UserRole = Field(default="student", description="Role the user acts as")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    class Config:
        """Pydantic configuration."""

        env_prefix = "CONCIERGE_"
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"


def load_settings(workspace_path: Optional[Path] = None) -> Settings:
    """Load settings from the environment and an optional workspace `.env`."""
    if workspace_path is None:
        return Settings()
    env_file = workspace_path / ".env"
    return Settings(_env_file=env_file if env_file.is_file() else None)


def user_id_for(role: str) -> str:
    if role not in USER_ROLES:
        raise InvalidRoleError(f"unknown role '{role}', expected one of: {', '.join(USER_ROLES)}")
    return f"user-{role}"
