"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections import Counter

import pytest

from distributor.adapters.persistence.memory import (
    InMemoryAgentDirectory,
    InMemoryAttendanceRepository,
    InMemoryTeamBacklog,
    InMemoryTeamLocks,
)
from distributor.application.ports.change_notifier import ChangeNotifier
from distributor.application.use_cases.distribute import Distributor
from distributor.application.use_cases.queries import DistributionQueries
from distributor.application.use_cases.register_agent import RegisterAgentUseCase
from distributor.domain.entities.agent import MAX_CAPACITY
from distributor.domain.entities.change_event import ChangeEvent
from distributor.domain.value_objects.enums import AttendanceStatus, Team


class RecordingNotifier(ChangeNotifier):
    def __init__(self):
        self.events: list[ChangeEvent] = []

    def publish(self, event):
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind.value for e in self.events]


@pytest.fixture
def attendance_repo():
    return InMemoryAttendanceRepository()


@pytest.fixture
def agent_directory():
    return InMemoryAgentDirectory()


@pytest.fixture
def backlog():
    return InMemoryTeamBacklog()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def distributor(attendance_repo, agent_directory, backlog, notifier):
    return Distributor(
        attendance_repo=attendance_repo,
        agent_directory=agent_directory,
        backlog=backlog,
        locks=InMemoryTeamLocks(),
        notifier=notifier,
    )


@pytest.fixture
def queries(attendance_repo, agent_directory, backlog):
    return DistributionQueries(attendance_repo, agent_directory, backlog)


@pytest.fixture
def register_agent_uc(agent_directory, distributor, notifier):
    return RegisterAgentUseCase(
        agent_directory=agent_directory,
        distributor=distributor,
        notifier=notifier,
    )


async def _assert_consistent(repo, directory, backlog):
    """Every agent's count matches its ASSIGNED attendances; every backlog mirrors WAITING."""
    attendances = await repo.get_all()
    load = Counter(a.agent_id for a in attendances if a.status == AttendanceStatus.ASSIGNED)
    for agent in await directory.list_all():
        assert 0 <= agent.active_count <= MAX_CAPACITY
        assert agent.active_count == load[agent.id]

    for team in Team:
        queued = await backlog.peek_all(team)
        assert len(queued) == len(set(queued))
        waiting = [a.id for a in attendances if a.team == team and a.status == AttendanceStatus.WAITING]
        assert sorted(queued) == sorted(waiting)


@pytest.fixture
def assert_consistent():
    return _assert_consistent
