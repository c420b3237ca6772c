"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import redis.asyncio as aioredis
from fastapi import Depends, Request

from distributor.adapters.notifications.broadcaster import ChangeBroadcaster
from distributor.adapters.persistence.memory import (
    InMemoryAgentDirectory,
    InMemoryAttendanceRepository,
    InMemoryTeamBacklog,
    InMemoryTeamLocks,
)
from distributor.adapters.persistence.redis_store import (
    RedisAgentDirectory,
    RedisAttendanceRepository,
    RedisKeys,
    RedisTeamBacklog,
    RedisTeamLocks,
)
from distributor.application.ports.agent_directory import AgentDirectory
from distributor.application.ports.attendance_repo import AttendanceRepository
from distributor.application.ports.team_backlog import TeamBacklog
from distributor.application.ports.team_lock import TeamLockProvider
from distributor.application.use_cases.distribute import Distributor
from distributor.application.use_cases.queries import DistributionQueries
from distributor.application.use_cases.register_agent import RegisterAgentUseCase
from distributor.config import Settings
from distributor.domain.policies.submission_rules import parse_team
from distributor.domain.value_objects.enums import Team

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Everything one running app needs, built once per app instance."""

    attendance_repo: AttendanceRepository
    agent_directory: AgentDirectory
    backlog: TeamBacklog
    locks: TeamLockProvider
    broadcaster: ChangeBroadcaster
    distributor: Distributor
    register_agent: RegisterAgentUseCase
    queries: DistributionQueries
    redis: aioredis.Redis | None = None

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()


def build_container(
    settings: Settings,
    redis_client: aioredis.Redis | None = None,
) -> Container:
    """Pick the storage backend from settings and assemble the use cases."""
    broadcaster = ChangeBroadcaster(queue_size=settings.notifier_queue_size)

    if settings.storage_backend == "redis":
        client = redis_client or aioredis.from_url(settings.redis_url, decode_responses=True)
        keys = RedisKeys(settings.redis_key_prefix)
        attendance_repo = RedisAttendanceRepository(client, keys)
        agent_directory = RedisAgentDirectory(client, keys)
        backlog = RedisTeamBacklog(client, keys)
        locks = RedisTeamLocks(
            client,
            keys,
            timeout=settings.lock_timeout_seconds,
            blocking_timeout=settings.lock_blocking_timeout_seconds,
        )
        logger.info("Using Redis storage backend at %s", settings.redis_url)
    else:
        client = None
        attendance_repo = InMemoryAttendanceRepository()
        agent_directory = InMemoryAgentDirectory()
        backlog = InMemoryTeamBacklog()
        locks = InMemoryTeamLocks()
        logger.info("Using in-memory storage backend")

    distributor = Distributor(
        attendance_repo=attendance_repo,
        agent_directory=agent_directory,
        backlog=backlog,
        locks=locks,
        notifier=broadcaster,
    )
    return Container(
        attendance_repo=attendance_repo,
        agent_directory=agent_directory,
        backlog=backlog,
        locks=locks,
        broadcaster=broadcaster,
        distributor=distributor,
        register_agent=RegisterAgentUseCase(
            agent_directory=agent_directory,
            distributor=distributor,
            notifier=broadcaster,
        ),
        queries=DistributionQueries(attendance_repo, agent_directory, backlog),
        redis=client,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_distributor(container: Container = Depends(get_container)) -> Distributor:
    return container.distributor


def get_queries(container: Container = Depends(get_container)) -> DistributionQueries:
    return container.queries


def get_register_agent_uc(
    container: Container = Depends(get_container),
) -> RegisterAgentUseCase:
    return container.register_agent


def get_team(team: str) -> Team:
    """Path parameter parsed like request bodies, so `cards` and `CARDS` both work."""
    return parse_team(team)
