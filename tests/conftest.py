from __future__ import annotations

import pytest
from fakes import COMPOSER, ORCHESTRATOR, ROUTER, SENDER, FakeAgents, FakeClock

from concierge.config import Settings


@pytest.fixture
def agents() -> FakeAgents:
    return FakeAgents()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        agent_endpoint="http://agents.test/invoke",
        router_agent_id=ROUTER,
        orchestrator_agent_id=ORCHESTRATOR,
        composer_agent_id=COMPOSER,
        sender_agent_id=SENDER,
        _env_file=None,
    )
