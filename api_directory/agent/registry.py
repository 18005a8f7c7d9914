"""
Agent registry: name -> agent. The A2A adapter resolves agents here by path parameter.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from api_directory.core.config import AGENT_ID
from api_directory.core.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class AgentResponse:
    """What an agent returns for one turn: the answer text and any tool-call results."""

    text: str
    tool_results: list[Any] = field(default_factory=list)


class Agent(Protocol):
    name: str

    async def respond(self, turns: list[dict[str, str]]) -> AgentResponse: ...


class AgentRegistry:
    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}

    def register(self, agent_id: str, agent: Agent) -> None:
        self._agents[agent_id] = agent
        logger.info("[registry] registered agent_id=%s", agent_id)

    def get(self, agent_id: str) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError(f"Agent '{agent_id}' not found")
        return agent

    def names(self) -> list[str]:
        return sorted(self._agents)


_registry: AgentRegistry | None = None


def get_registry() -> AgentRegistry:
    """Process-wide registry with the API directory agent registered under AGENT_ID."""
    global _registry
    if _registry is None:
        from api_directory.agent.graph import ApiDirectoryAgent

        _registry = AgentRegistry()
        _registry.register(AGENT_ID, ApiDirectoryAgent())
    return _registry
