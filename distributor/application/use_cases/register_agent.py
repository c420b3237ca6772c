"""RegisterAgentUseCase — add an agent and let it pick up waiting work."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from distributor.application.ports.agent_directory import AgentDirectory
from distributor.application.ports.change_notifier import ChangeNotifier, publish_quietly
from distributor.application.use_cases.distribute import Distributor, utcnow
from distributor.domain.entities.agent import Agent
from distributor.domain.entities.change_event import ChangeEvent
from distributor.domain.policies.submission_rules import parse_team, require_text
from distributor.domain.value_objects.enums import ChangeKind, Team

logger = logging.getLogger(__name__)


class RegisterAgentUseCase:
    def __init__(
        self,
        agent_directory: AgentDirectory,
        distributor: Distributor,
        notifier: ChangeNotifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._agents = agent_directory
        self._distributor = distributor
        self._notifier = notifier
        self._clock = clock

    async def execute(self, name: str, team: Team | str) -> Agent:
        """Register the agent, then drain its team's backlog into the new capacity."""
        team = parse_team(team)
        name = require_text(name, "name")

        agent = await self._agents.register(Agent(id=None, name=name, team=team))
        logger.info("Agent %s registered: name=%s, team=%s", agent.id, name, team.value)
        publish_quietly(
            self._notifier,
            ChangeEvent(
                kind=ChangeKind.AGENT_REGISTERED,
                team=team,
                occurred_at=self._clock(),
                agent_id=agent.id,
            ),
        )

        drained = await self._distributor.drain(team)
        if drained:
            return await self._agents.get_by_id(agent.id) or agent
        return agent
