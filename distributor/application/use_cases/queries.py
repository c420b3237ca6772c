"""Read-only views over attendances, agents and backlogs.

Every call is a point-in-time snapshot; nothing here takes a team lock, so
two calls may observe different states.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from distributor.application.ports.agent_directory import AgentDirectory
from distributor.application.ports.attendance_repo import AttendanceRepository
from distributor.application.ports.team_backlog import TeamBacklog
from distributor.domain.entities.agent import Agent
from distributor.domain.entities.attendance import Attendance
from distributor.domain.errors import NotFoundError
from distributor.domain.policies.submission_rules import parse_team
from distributor.domain.value_objects.enums import AttendanceStatus, Team


@dataclass
class TeamStatus:
    """Everything a dashboard shows for a single team."""

    team: Team
    queue_size: int
    active_attendances: int
    agents: list[Agent] = field(default_factory=list)
    queue: list[Attendance] = field(default_factory=list)


@dataclass
class Overview:
    """Raw system-wide counts."""

    total_active: int
    total_queued: int
    total_agents: int
    available_agents: int
    queued_by_team: dict[Team, int] = field(default_factory=dict)
    active_by_team: dict[Team, int] = field(default_factory=dict)


class DistributionQueries:
    def __init__(
        self,
        attendance_repo: AttendanceRepository,
        agent_directory: AgentDirectory,
        backlog: TeamBacklog,
    ):
        self._attendances = attendance_repo
        self._agents = agent_directory
        self._backlog = backlog

    # ─── Attendances ────────────────────────────────────────────────

    async def get_attendance(self, attendance_id: int) -> Attendance:
        attendance = await self._attendances.get_by_id(attendance_id)
        if attendance is None:
            raise NotFoundError(f"Attendance not found: {attendance_id}")
        return attendance

    async def list_attendances(self) -> list[Attendance]:
        return await self._attendances.get_all()

    async def list_by_team(self, team: Team | str) -> list[Attendance]:
        return await self._attendances.get_by_team(parse_team(team))

    async def list_by_status(self, status: AttendanceStatus) -> list[Attendance]:
        return await self._attendances.get_by_status(status)

    # ─── Agents ─────────────────────────────────────────────────────

    async def get_agent(self, agent_id: int) -> Agent:
        agent = await self._agents.get_by_id(agent_id)
        if agent is None:
            raise NotFoundError(f"Agent not found: {agent_id}")
        return agent

    async def list_agents(self) -> list[Agent]:
        return await self._agents.list_all()

    async def list_agents_by_team(self, team: Team | str) -> list[Agent]:
        return await self._agents.list_by_team(parse_team(team))

    async def list_available_agents(self, team: Team | str) -> list[Agent]:
        agents = await self._agents.list_by_team(parse_team(team))
        return [a for a in agents if a.is_available()]

    # ─── Backlogs ───────────────────────────────────────────────────

    async def queue_contents(self, team: Team | str) -> list[Attendance]:
        """Queued attendances of *team*, head first."""
        ids = await self._backlog.peek_all(parse_team(team))
        queued = []
        for attendance_id in ids:
            attendance = await self._attendances.get_by_id(attendance_id)
            if attendance is not None:
                queued.append(attendance)
        return queued

    async def queue_size(self, team: Team | str) -> int:
        return await self._backlog.size(parse_team(team))

    # ─── Dashboard ──────────────────────────────────────────────────

    async def team_status(self, team: Team | str) -> TeamStatus:
        team = parse_team(team)
        attendances = await self._attendances.get_by_team(team)
        return TeamStatus(
            team=team,
            queue_size=await self._backlog.size(team),
            active_attendances=sum(1 for a in attendances if a.is_assigned()),
            agents=await self._agents.list_by_team(team),
            queue=await self.queue_contents(team),
        )

    async def overview(self) -> Overview:
        assigned = await self._attendances.get_by_status(AttendanceStatus.ASSIGNED)
        agents = await self._agents.list_all()

        queued_by_team = {team: await self._backlog.size(team) for team in Team}
        active_by_team = {
            team: sum(1 for a in assigned if a.team == team) for team in Team
        }
        return Overview(
            total_active=len(assigned),
            total_queued=sum(queued_by_team.values()),
            total_agents=len(agents),
            available_agents=sum(1 for a in agents if a.is_available()),
            queued_by_team=queued_by_team,
            active_by_team=active_by_team,
        )
