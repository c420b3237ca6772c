"""Redis implementations of the storage ports — shared across processes.

Key layout (under a configurable prefix):
    attendance:{id}          JSON document
    attendances:ids          SET of attendance ids
    attendance:id:counter    INCR counter
    agent:{id}               HASH id/name/team/active_count
    agents:ids               SET of agent ids
    agents:team:{TEAM}       SET of agent ids per team
    agent:id:counter         INCR counter
    queue:{TEAM}             LIST, RPUSH to enqueue / LPOP to dequeue / LPUSH to requeue
    lock:team:{TEAM}         redis-py Lock token
"""

from __future__ import annotations

import json
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime

import redis.asyncio as aioredis
from redis.exceptions import LockError, LockNotOwnedError

from distributor.application.ports.agent_directory import AgentDirectory
from distributor.application.ports.attendance_repo import AttendanceRepository
from distributor.application.ports.team_backlog import TeamBacklog
from distributor.application.ports.team_lock import TeamLockProvider
from distributor.domain.entities.agent import MAX_CAPACITY, Agent
from distributor.domain.entities.attendance import Attendance
from distributor.domain.errors import NotFoundError
from distributor.domain.policies.agent_selection import pick_available
from distributor.domain.value_objects.enums import AttendanceStatus, Team

logger = logging.getLogger(__name__)

# Both scripts return -1 for an unknown agent and -2 when the count is at its bound.
_INCREMENT_IF_BELOW_CAP = """
local current = redis.call('HGET', KEYS[1], 'active_count')
if not current then return -1 end
if tonumber(current) >= tonumber(ARGV[1]) then return -2 end
return redis.call('HINCRBY', KEYS[1], 'active_count', 1)
"""

_DECREMENT_IF_ABOVE_ZERO = """
local current = redis.call('HGET', KEYS[1], 'active_count')
if not current then return -1 end
if tonumber(current) <= 0 then return -2 end
return redis.call('HINCRBY', KEYS[1], 'active_count', -1)
"""

_UNKNOWN = -1
_AT_BOUND = -2


class RedisKeys:
    def __init__(self, prefix: str = ""):
        self._prefix = prefix

    def attendance(self, attendance_id: int) -> str:
        return f"{self._prefix}attendance:{attendance_id}"

    @property
    def attendance_ids(self) -> str:
        return f"{self._prefix}attendances:ids"

    @property
    def attendance_counter(self) -> str:
        return f"{self._prefix}attendance:id:counter"

    def agent(self, agent_id: int) -> str:
        return f"{self._prefix}agent:{agent_id}"

    @property
    def agent_ids(self) -> str:
        return f"{self._prefix}agents:ids"

    def team_agents(self, team: Team) -> str:
        return f"{self._prefix}agents:team:{team.value}"

    @property
    def agent_counter(self) -> str:
        return f"{self._prefix}agent:id:counter"

    def queue(self, team: Team) -> str:
        return f"{self._prefix}queue:{team.value}"

    def team_lock(self, team: Team) -> str:
        return f"{self._prefix}lock:team:{team.value}"


# ─── Mappers ─────────────────────────────────────────────────────────


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _attendance_to_json(a: Attendance) -> str:
    return json.dumps(
        {
            "id": a.id,
            "team": a.team.value,
            "customer_name": a.customer_name,
            "subject": a.subject,
            "status": a.status.value,
            "agent_id": a.agent_id,
            "created_at": a.created_at.isoformat() if a.created_at else None,
            "assigned_at": a.assigned_at.isoformat() if a.assigned_at else None,
            "completed_at": a.completed_at.isoformat() if a.completed_at else None,
        }
    )


def _attendance_to_domain(raw: str) -> Attendance:
    data = json.loads(raw)
    return Attendance(
        id=data["id"],
        team=Team(data["team"]),
        customer_name=data["customer_name"],
        subject=data["subject"],
        status=AttendanceStatus(data["status"]),
        agent_id=data.get("agent_id"),
        created_at=_dt(data.get("created_at")),
        assigned_at=_dt(data.get("assigned_at")),
        completed_at=_dt(data.get("completed_at")),
    )


def _agent_to_domain(fields: dict) -> Agent:
    return Agent(
        id=int(fields["id"]),
        name=fields["name"],
        team=Team(fields["team"]),
        active_count=int(fields["active_count"]),
    )


# ─── Repositories ────────────────────────────────────────────────────


class RedisAttendanceRepository(AttendanceRepository):
    def __init__(self, client: aioredis.Redis, keys: RedisKeys):
        self._r = client
        self._k = keys

    async def save(self, attendance: Attendance) -> Attendance:
        attendance.id = int(await self._r.incr(self._k.attendance_counter))
        async with self._r.pipeline(transaction=True) as pipe:
            pipe.set(self._k.attendance(attendance.id), _attendance_to_json(attendance))
            pipe.sadd(self._k.attendance_ids, attendance.id)
            await pipe.execute()
        return attendance

    async def get_by_id(self, attendance_id: int) -> Attendance | None:
        raw = await self._r.get(self._k.attendance(attendance_id))
        return _attendance_to_domain(raw) if raw else None

    async def update(self, attendance: Attendance) -> Attendance:
        stored = await self._r.set(
            self._k.attendance(attendance.id), _attendance_to_json(attendance), xx=True
        )
        if not stored:
            raise NotFoundError(f"Attendance not found: {attendance.id}")
        return attendance

    async def get_all(self) -> list[Attendance]:
        ids = sorted(int(i) for i in await self._r.smembers(self._k.attendance_ids))
        if not ids:
            return []
        raws = await self._r.mget([self._k.attendance(i) for i in ids])
        return [_attendance_to_domain(raw) for raw in raws if raw]

    async def get_by_team(self, team: Team) -> list[Attendance]:
        return [a for a in await self.get_all() if a.team == team]

    async def get_by_status(self, status: AttendanceStatus) -> list[Attendance]:
        return [a for a in await self.get_all() if a.status == status]

    async def ping(self) -> bool:
        try:
            return bool(await self._r.ping())
        except aioredis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False


class RedisAgentDirectory(AgentDirectory):
    def __init__(self, client: aioredis.Redis, keys: RedisKeys):
        self._r = client
        self._k = keys
        self._increment = client.register_script(_INCREMENT_IF_BELOW_CAP)
        self._decrement = client.register_script(_DECREMENT_IF_ABOVE_ZERO)

    async def register(self, agent: Agent) -> Agent:
        agent.id = int(await self._r.incr(self._k.agent_counter))
        agent.active_count = 0
        async with self._r.pipeline(transaction=True) as pipe:
            pipe.hset(
                self._k.agent(agent.id),
                mapping={
                    "id": agent.id,
                    "name": agent.name,
                    "team": agent.team.value,
                    "active_count": 0,
                },
            )
            pipe.sadd(self._k.agent_ids, agent.id)
            pipe.sadd(self._k.team_agents(agent.team), agent.id)
            await pipe.execute()
        return agent

    async def get_by_id(self, agent_id: int) -> Agent | None:
        fields = await self._r.hgetall(self._k.agent(agent_id))
        return _agent_to_domain(fields) if fields else None

    async def list_all(self) -> list[Agent]:
        return await self._load(await self._r.smembers(self._k.agent_ids))

    async def list_by_team(self, team: Team) -> list[Agent]:
        return await self._load(await self._r.smembers(self._k.team_agents(team)))

    async def find_available(self, team: Team) -> Agent | None:
        return pick_available(await self.list_by_team(team))

    async def increment(self, agent_id: int) -> bool:
        result = await self._increment(keys=[self._k.agent(agent_id)], args=[MAX_CAPACITY])
        return self._check(agent_id, int(result))

    async def decrement(self, agent_id: int) -> bool:
        result = await self._decrement(keys=[self._k.agent(agent_id)])
        return self._check(agent_id, int(result))

    @staticmethod
    def _check(agent_id: int, result: int) -> bool:
        if result == _UNKNOWN:
            raise NotFoundError(f"Agent not found: {agent_id}")
        return result != _AT_BOUND

    async def _load(self, raw_ids) -> list[Agent]:
        ids = sorted(int(i) for i in raw_ids)
        if not ids:
            return []
        async with self._r.pipeline(transaction=False) as pipe:
            for agent_id in ids:
                pipe.hgetall(self._k.agent(agent_id))
            rows = await pipe.execute()
        return [_agent_to_domain(fields) for fields in rows if fields]


class RedisTeamBacklog(TeamBacklog):
    def __init__(self, client: aioredis.Redis, keys: RedisKeys):
        self._r = client
        self._k = keys

    async def enqueue(self, team: Team, attendance_id: int) -> None:
        await self._r.rpush(self._k.queue(team), attendance_id)

    async def requeue(self, team: Team, attendance_id: int) -> None:
        await self._r.lpush(self._k.queue(team), attendance_id)

    async def dequeue(self, team: Team) -> int | None:
        raw = await self._r.lpop(self._k.queue(team))
        return int(raw) if raw is not None else None

    async def peek_all(self, team: Team) -> list[int]:
        return [int(raw) for raw in await self._r.lrange(self._k.queue(team), 0, -1)]

    async def size(self, team: Team) -> int:
        return int(await self._r.llen(self._k.queue(team)))

    async def clear(self, team: Team) -> int:
        async with self._r.pipeline(transaction=True) as pipe:
            pipe.llen(self._k.queue(team))
            pipe.delete(self._k.queue(team))
            removed, _ = await pipe.execute()
        return int(removed)


class RedisTeamLocks(TeamLockProvider):
    """Per-team redis-py Lock (SET NX with TTL), so several processes serialize."""

    def __init__(
        self,
        client: aioredis.Redis,
        keys: RedisKeys,
        timeout: float,
        blocking_timeout: float,
    ):
        self._r = client
        self._k = keys
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    def lock(self, team: Team) -> AbstractAsyncContextManager:
        return self._held(team)

    @asynccontextmanager
    async def _held(self, team: Team):
        lock = self._r.lock(
            self._k.team_lock(team),
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        if not await lock.acquire():
            raise LockError(f"Could not acquire the {team.value} lock in time")
        try:
            yield lock
        finally:
            try:
                await lock.release()
            except LockNotOwnedError:
                # Work inside already committed; the lease ran out under it
                logger.error(
                    "Lock for team %s expired before release (timeout=%ss)",
                    team.value, self._timeout,
                )
