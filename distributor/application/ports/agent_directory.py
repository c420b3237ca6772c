"""Port interface for the agent directory and its capacity ledger."""

from abc import ABC, abstractmethod

from distributor.domain.entities.agent import Agent
from distributor.domain.value_objects.enums import Team


class AgentDirectory(ABC):
    @abstractmethod
    async def register(self, agent: Agent) -> Agent:
        """Store a new agent with no active attendances and assign its id."""
        ...

    @abstractmethod
    async def get_by_id(self, agent_id: int) -> Agent | None:
        ...

    @abstractmethod
    async def list_all(self) -> list[Agent]:
        ...

    @abstractmethod
    async def list_by_team(self, team: Team) -> list[Agent]:
        ...

    @abstractmethod
    async def find_available(self, team: Team) -> Agent | None:
        """Return one agent of *team* with spare capacity, or None."""
        ...

    @abstractmethod
    async def increment(self, agent_id: int) -> bool:
        """Atomically charge one unit if below capacity.

        Returns False, leaving the count untouched, when the agent is full.
        Raises NotFoundError for an unknown agent.
        """
        ...

    @abstractmethod
    async def decrement(self, agent_id: int) -> bool:
        """Atomically release one unit, floored at zero.

        Returns False when the agent had nothing to release.
        Raises NotFoundError for an unknown agent.
        """
        ...
