"""Process-local implementations of the storage ports.

State lives in plain dicts and deques owned by each instance. Every method
completes without awaiting anything, so each call is atomic with respect to
other coroutines on the same event loop. Stored entities are copied on the
way in and on the way out: callers never hold a live reference.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import deque
from contextlib import AbstractAsyncContextManager
from dataclasses import replace

from distributor.application.ports.agent_directory import AgentDirectory
from distributor.application.ports.attendance_repo import AttendanceRepository
from distributor.application.ports.team_backlog import TeamBacklog
from distributor.application.ports.team_lock import TeamLockProvider
from distributor.domain.entities.agent import Agent
from distributor.domain.entities.attendance import Attendance
from distributor.domain.errors import NotFoundError
from distributor.domain.policies.agent_selection import pick_available
from distributor.domain.value_objects.enums import AttendanceStatus, Team


class InMemoryAttendanceRepository(AttendanceRepository):
    def __init__(self):
        self._attendances: dict[int, Attendance] = {}
        self._ids = itertools.count(1)

    async def save(self, attendance: Attendance) -> Attendance:
        attendance.id = next(self._ids)
        self._attendances[attendance.id] = replace(attendance)
        return attendance

    async def get_by_id(self, attendance_id: int) -> Attendance | None:
        stored = self._attendances.get(attendance_id)
        return replace(stored) if stored else None

    async def update(self, attendance: Attendance) -> Attendance:
        if attendance.id not in self._attendances:
            raise NotFoundError(f"Attendance not found: {attendance.id}")
        self._attendances[attendance.id] = replace(attendance)
        return attendance

    async def get_all(self) -> list[Attendance]:
        return [replace(a) for _, a in sorted(self._attendances.items())]

    async def get_by_team(self, team: Team) -> list[Attendance]:
        return [a for a in await self.get_all() if a.team == team]

    async def get_by_status(self, status: AttendanceStatus) -> list[Attendance]:
        return [a for a in await self.get_all() if a.status == status]

    async def ping(self) -> bool:
        return True


class InMemoryAgentDirectory(AgentDirectory):
    def __init__(self):
        self._agents: dict[int, Agent] = {}
        self._ids = itertools.count(1)

    async def register(self, agent: Agent) -> Agent:
        agent.id = next(self._ids)
        agent.active_count = 0
        self._agents[agent.id] = replace(agent)
        return agent

    async def get_by_id(self, agent_id: int) -> Agent | None:
        stored = self._agents.get(agent_id)
        return replace(stored) if stored else None

    async def list_all(self) -> list[Agent]:
        return [replace(a) for _, a in sorted(self._agents.items())]

    async def list_by_team(self, team: Team) -> list[Agent]:
        return [a for a in await self.list_all() if a.team == team]

    async def find_available(self, team: Team) -> Agent | None:
        chosen = pick_available(a for a in self._agents.values() if a.team == team)
        return replace(chosen) if chosen else None

    async def increment(self, agent_id: int) -> bool:
        return self._get(agent_id).charge()

    async def decrement(self, agent_id: int) -> bool:
        return self._get(agent_id).release()

    def _get(self, agent_id: int) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError(f"Agent not found: {agent_id}")
        return agent


class InMemoryTeamBacklog(TeamBacklog):
    def __init__(self):
        self._queues: dict[Team, deque[int]] = {team: deque() for team in Team}

    async def enqueue(self, team: Team, attendance_id: int) -> None:
        self._queues[team].append(attendance_id)

    async def requeue(self, team: Team, attendance_id: int) -> None:
        self._queues[team].appendleft(attendance_id)

    async def dequeue(self, team: Team) -> int | None:
        queue = self._queues[team]
        return queue.popleft() if queue else None

    async def peek_all(self, team: Team) -> list[int]:
        return list(self._queues[team])

    async def size(self, team: Team) -> int:
        return len(self._queues[team])

    async def clear(self, team: Team) -> int:
        removed = len(self._queues[team])
        self._queues[team].clear()
        return removed


class InMemoryTeamLocks(TeamLockProvider):
    """One asyncio.Lock per team, created up front (Team is a closed set)."""

    def __init__(self):
        self._locks: dict[Team, asyncio.Lock] = {team: asyncio.Lock() for team in Team}

    def lock(self, team: Team) -> AbstractAsyncContextManager:
        return self._locks[team]
