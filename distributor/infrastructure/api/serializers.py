"""Domain → JSON dict conversion shared by the routers."""

from __future__ import annotations

from distributor.application.use_cases.queries import Overview, TeamStatus
from distributor.domain.entities.agent import MAX_CAPACITY, Agent
from distributor.domain.entities.attendance import Attendance


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_attendance(a: Attendance) -> dict:
    return {
        "id": a.id,
        "team": a.team.value,
        "customer_name": a.customer_name,
        "subject": a.subject,
        "status": a.status.value,
        "agent_id": a.agent_id,
        "created_at": _iso(a.created_at),
        "assigned_at": _iso(a.assigned_at),
        "completed_at": _iso(a.completed_at),
    }


def serialize_agent(a: Agent) -> dict:
    return {
        "id": a.id,
        "name": a.name,
        "team": a.team.value,
        "active_count": a.active_count,
        "max_capacity": MAX_CAPACITY,
        "available": a.is_available(),
    }


def serialize_team_status(s: TeamStatus) -> dict:
    return {
        "team": s.team.value,
        "queue_size": s.queue_size,
        "active_attendances": s.active_attendances,
        "agents": [serialize_agent(a) for a in s.agents],
        "queue": [serialize_attendance(a) for a in s.queue],
    }


def serialize_overview(o: Overview) -> dict:
    return {
        "total_active": o.total_active,
        "total_queued": o.total_queued,
        "total_agents": o.total_agents,
        "available_agents": o.available_agents,
        "queued_by_team": {team.value: n for team, n in o.queued_by_team.items()},
        "active_by_team": {team.value: n for team, n in o.active_by_team.items()},
    }
