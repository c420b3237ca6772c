"""Tests for Distributor with the in-memory backend."""

from __future__ import annotations

import pytest

from distributor.adapters.persistence.memory import (
    InMemoryAttendanceRepository,
    InMemoryTeamLocks,
)
from distributor.application.ports.change_notifier import ChangeNotifier
from distributor.application.use_cases.distribute import Distributor
from distributor.domain.entities.agent import Agent
from distributor.domain.errors import (
    CapacityInvariantViolation,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from distributor.domain.value_objects.enums import AttendanceStatus, Team


async def _register(directory, team: Team, count: int = 1) -> list[Agent]:
    return [
        await directory.register(Agent(id=None, name=f"{team.value}-{i}", team=team))
        for i in range(count)
    ]


async def _submit(distributor, team: Team, n: int):
    return [await distributor.submit(team, f"Customer {i}", "Help") for i in range(n)]


# ─── Submit ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_submit_assigns_when_agent_available(distributor, agent_directory):
    [agent] = await _register(agent_directory, Team.CARDS)
    attendance = await distributor.submit(Team.CARDS, "Ana", "Card blocked")

    assert attendance.id == 1
    assert attendance.status == AttendanceStatus.ASSIGNED
    assert attendance.agent_id == agent.id
    assert attendance.created_at is not None
    assert attendance.assigned_at is not None
    assert (await agent_directory.get_by_id(agent.id)).active_count == 1


@pytest.mark.asyncio
async def test_submit_persists_assigned_state(distributor, agent_directory, attendance_repo):
    await _register(agent_directory, Team.CARDS)
    attendance = await distributor.submit(Team.CARDS, "Ana", "Card blocked")
    stored = await attendance_repo.get_by_id(attendance.id)
    assert stored.status == AttendanceStatus.ASSIGNED
    assert stored.agent_id == attendance.agent_id


@pytest.mark.asyncio
async def test_submit_with_zero_agents_queues_without_error(distributor, backlog):
    """Team with no agents: E stays WAITING, backlog=[E]."""
    e = await distributor.submit(Team.LOANS, "Eve", "Loan rates")
    assert e.status == AttendanceStatus.WAITING
    assert e.agent_id is None
    assert await backlog.peek_all(Team.LOANS) == [e.id]


@pytest.mark.asyncio
async def test_submit_accepts_team_as_string(distributor, agent_directory):
    await _register(agent_directory, Team.OTHER)
    attendance = await distributor.submit("other", "Ana", "Question")
    assert attendance.team == Team.OTHER
    assert attendance.status == AttendanceStatus.ASSIGNED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "team, name, subject",
    [
        ("UNKNOWN", "Ana", "Subject"),
        (None, "Ana", "Subject"),
        (Team.CARDS, "", "Subject"),
        (Team.CARDS, "Ana", "  "),
    ],
)
async def test_submit_rejects_invalid_payload_without_side_effects(
    distributor, attendance_repo, backlog, team, name, subject,
):
    with pytest.raises(ValidationError):
        await distributor.submit(team, name, subject)
    assert await attendance_repo.get_all() == []
    assert all([await backlog.size(t) == 0 for t in Team])


@pytest.mark.asyncio
async def test_n_submissions_fill_capacity_then_queue_in_order(
    distributor, agent_directory, backlog,
):
    """K agents → first 3K assigned, the rest queued in submission order."""
    agents = await _register(agent_directory, Team.CARDS, count=2)
    submitted = await _submit(distributor, Team.CARDS, 9)

    assigned = [a for a in submitted if a.status == AttendanceStatus.ASSIGNED]
    waiting = [a for a in submitted if a.status == AttendanceStatus.WAITING]
    assert [a.id for a in assigned] == [1, 2, 3, 4, 5, 6]
    assert await backlog.peek_all(Team.CARDS) == [a.id for a in waiting] == [7, 8, 9]
    for agent in agents:
        assert (await agent_directory.get_by_id(agent.id)).active_count == 3


@pytest.mark.asyncio
async def test_submit_spreads_load_across_agents(distributor, agent_directory):
    a1, a2 = await _register(agent_directory, Team.CARDS, count=2)
    first, second = await _submit(distributor, Team.CARDS, 2)
    assert first.agent_id == a1.id
    assert second.agent_id == a2.id


# ─── Complete ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_single_agent_scenario(distributor, agent_directory, backlog, attendance_repo):
    """A, B, C assigned; D queued. Complete A → D assigned, backlog empty."""
    [agent] = await _register(agent_directory, Team.CARDS)
    a, b, c, d = await _submit(distributor, Team.CARDS, 4)

    assert {a.agent_id, b.agent_id, c.agent_id} == {agent.id}
    assert d.status == AttendanceStatus.WAITING
    assert (await agent_directory.get_by_id(agent.id)).active_count == 3
    assert await backlog.peek_all(Team.CARDS) == [d.id]

    completed = await distributor.complete(a.id)

    assert completed.status == AttendanceStatus.COMPLETED
    assert completed.completed_at is not None
    assert completed.agent_id == agent.id
    drained = await attendance_repo.get_by_id(d.id)
    assert drained.status == AttendanceStatus.ASSIGNED
    assert drained.agent_id == agent.id
    assert (await agent_directory.get_by_id(agent.id)).active_count == 3
    assert await backlog.peek_all(Team.CARDS) == []


@pytest.mark.asyncio
async def test_complete_drains_head_and_keeps_fifo(distributor, agent_directory, backlog, attendance_repo):
    await _register(agent_directory, Team.CARDS)
    submitted = await _submit(distributor, Team.CARDS, 6)
    assert await backlog.peek_all(Team.CARDS) == [4, 5, 6]

    await distributor.complete(submitted[1].id)

    assert (await attendance_repo.get_by_id(4)).status == AttendanceStatus.ASSIGNED
    assert await backlog.peek_all(Team.CARDS) == [5, 6]


@pytest.mark.asyncio
async def test_complete_with_empty_backlog_frees_capacity(distributor, agent_directory):
    [agent] = await _register(agent_directory, Team.LOANS)
    [a] = await _submit(distributor, Team.LOANS, 1)
    await distributor.complete(a.id)
    assert (await agent_directory.get_by_id(agent.id)).active_count == 0


@pytest.mark.asyncio
async def test_complete_twice_fails_and_decrements_once(distributor, agent_directory):
    [agent] = await _register(agent_directory, Team.CARDS)
    a, _ = await _submit(distributor, Team.CARDS, 2)

    await distributor.complete(a.id)
    with pytest.raises(InvalidStateError):
        await distributor.complete(a.id)

    assert (await agent_directory.get_by_id(agent.id)).active_count == 1


@pytest.mark.asyncio
async def test_complete_waiting_attendance_is_rejected(distributor, backlog, attendance_repo):
    e = await distributor.submit(Team.OTHER, "Eve", "Waiting")
    with pytest.raises(InvalidStateError):
        await distributor.complete(e.id)
    assert (await attendance_repo.get_by_id(e.id)).status == AttendanceStatus.WAITING
    assert await backlog.peek_all(Team.OTHER) == [e.id]


@pytest.mark.asyncio
async def test_complete_unknown_attendance(distributor):
    with pytest.raises(NotFoundError):
        await distributor.complete(999)


@pytest.mark.asyncio
async def test_cross_team_independence(distributor, agent_directory, backlog):
    await _register(agent_directory, Team.CARDS)
    await _register(agent_directory, Team.LOANS)
    await _submit(distributor, Team.CARDS, 5)

    loan = await distributor.submit(Team.LOANS, "Lia", "Loan")

    assert loan.status == AttendanceStatus.ASSIGNED
    assert await backlog.size(Team.CARDS) == 2
    assert await backlog.size(Team.LOANS) == 0


@pytest.mark.asyncio
async def test_drain_serves_queue_when_capacity_appears(distributor, agent_directory, backlog):
    await _submit(distributor, Team.CARDS, 4)
    await _register(agent_directory, Team.CARDS)

    drained = await distributor.drain(Team.CARDS)

    assert [a.id for a in drained] == [1, 2, 3]
    assert await backlog.peek_all(Team.CARDS) == [4]


@pytest.mark.asyncio
async def test_clear_backlog_reports_removed_count(distributor, backlog):
    await _submit(distributor, Team.OTHER, 3)
    assert await distributor.clear_backlog(Team.OTHER) == 3
    assert await backlog.size(Team.OTHER) == 0


# ─── Invariants ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_backlog_membership_matches_waiting_status(
    distributor, agent_directory, backlog, attendance_repo,
):
    await _register(agent_directory, Team.CARDS)
    submitted = await _submit(distributor, Team.CARDS, 7)
    await distributor.complete(submitted[0].id)
    await distributor.complete(submitted[2].id)

    queued = set(await backlog.peek_all(Team.CARDS))
    for a in await attendance_repo.get_all():
        assert (a.id in queued) == (a.status == AttendanceStatus.WAITING)
        assert (a.agent_id is not None) == (a.status != AttendanceStatus.WAITING)


# ─── Notifications ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_events_emitted_for_every_transition(distributor, agent_directory, notifier):
    await _register(agent_directory, Team.CARDS)
    a, *_ = await _submit(distributor, Team.CARDS, 4)
    await distributor.complete(a.id)

    assert notifier.kinds() == ["assigned"] * 3 + ["queued", "completed", "drained"]


class ExplodingNotifier(ChangeNotifier):
    def publish(self, event):
        raise RuntimeError("push channel down")


@pytest.mark.asyncio
async def test_notifier_failure_never_fails_the_operation(
    attendance_repo, agent_directory, backlog,
):
    distributor = Distributor(
        attendance_repo, agent_directory, backlog, InMemoryTeamLocks(), ExplodingNotifier(),
    )
    await _register(agent_directory, Team.CARDS)
    a = await distributor.submit(Team.CARDS, "Ana", "Card")
    await distributor.complete(a.id)
    assert (await attendance_repo.get_by_id(a.id)).status == AttendanceStatus.COMPLETED


# ─── Defensive ledger checks ─────────────────────────────────────────


class RefusingDirectory:
    """Wraps a directory and refuses every charge, as a corrupted ledger would."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    async def increment(self, agent_id):
        return False


@pytest.mark.asyncio
async def test_refused_charge_raises_and_keeps_attendance_queued(
    attendance_repo, agent_directory, backlog,
):
    await _register(agent_directory, Team.CARDS)
    distributor = Distributor(
        attendance_repo, RefusingDirectory(agent_directory), backlog, InMemoryTeamLocks(),
    )

    with pytest.raises(CapacityInvariantViolation):
        await distributor.submit(Team.CARDS, "Ana", "Card")

    [stored] = await attendance_repo.get_all()
    assert stored.status == AttendanceStatus.WAITING
    assert await backlog.peek_all(Team.CARDS) == [stored.id]


@pytest.mark.asyncio
async def test_refused_release_leaves_attendance_assigned(
    distributor, attendance_repo, agent_directory,
):
    [agent] = await _register(agent_directory, Team.CARDS)
    a = await distributor.submit(Team.CARDS, "Ana", "Card")
    # Simulate a ledger that already lost the charge
    await agent_directory.decrement(agent.id)

    with pytest.raises(CapacityInvariantViolation):
        await distributor.complete(a.id)

    assert (await attendance_repo.get_by_id(a.id)).status == AttendanceStatus.ASSIGNED


# ─── Failed writes keep the ledger honest ────────────────────────────


class FlakyRepository(InMemoryAttendanceRepository):
    """Fails the next update of every id listed in fail_once."""

    def __init__(self):
        super().__init__()
        self.fail_once: set[int] = set()

    async def update(self, attendance):
        if attendance.id in self.fail_once:
            self.fail_once.discard(attendance.id)
            raise RuntimeError("store unavailable")
        return await super().update(attendance)


@pytest.fixture
def flaky_repo():
    return FlakyRepository()


@pytest.fixture
def flaky_distributor(flaky_repo, agent_directory, backlog):
    return Distributor(flaky_repo, agent_directory, backlog, InMemoryTeamLocks())


@pytest.mark.asyncio
async def test_failed_assignment_write_releases_agent_and_queues(
    flaky_distributor, flaky_repo, agent_directory, backlog,
):
    [agent] = await _register(agent_directory, Team.CARDS)
    flaky_repo.fail_once.add(1)

    with pytest.raises(RuntimeError):
        await flaky_distributor.submit(Team.CARDS, "Ana", "Card")

    stored = await flaky_repo.get_by_id(1)
    assert stored.status == AttendanceStatus.WAITING
    assert stored.agent_id is None
    assert (await agent_directory.get_by_id(agent.id)).active_count == 0
    assert await backlog.peek_all(Team.CARDS) == [1]

    [drained] = await flaky_distributor.drain(Team.CARDS)
    assert drained.id == 1
    assert (await agent_directory.get_by_id(agent.id)).active_count == 1


@pytest.mark.asyncio
async def test_failed_completion_write_recharges_agent(
    flaky_distributor, flaky_repo, agent_directory,
):
    [agent] = await _register(agent_directory, Team.CARDS)
    a = await flaky_distributor.submit(Team.CARDS, "Ana", "Card")
    flaky_repo.fail_once.add(a.id)

    with pytest.raises(RuntimeError):
        await flaky_distributor.complete(a.id)

    assert (await flaky_repo.get_by_id(a.id)).status == AttendanceStatus.ASSIGNED
    assert (await agent_directory.get_by_id(agent.id)).active_count == 1

    await flaky_distributor.complete(a.id)
    assert (await flaky_repo.get_by_id(a.id)).status == AttendanceStatus.COMPLETED
    assert (await agent_directory.get_by_id(agent.id)).active_count == 0


@pytest.mark.asyncio
async def test_failed_drain_write_puts_head_back_in_front(
    flaky_distributor, flaky_repo, agent_directory, backlog,
):
    [agent] = await _register(agent_directory, Team.CARDS)
    a, _, _, d, e = await _submit(flaky_distributor, Team.CARDS, 5)
    flaky_repo.fail_once.add(d.id)

    with pytest.raises(RuntimeError):
        await flaky_distributor.complete(a.id)

    assert (await flaky_repo.get_by_id(a.id)).status == AttendanceStatus.COMPLETED
    assert (await flaky_repo.get_by_id(d.id)).status == AttendanceStatus.WAITING
    assert await backlog.peek_all(Team.CARDS) == [d.id, e.id]
    assert (await agent_directory.get_by_id(agent.id)).active_count == 2

    [drained] = await flaky_distributor.drain(Team.CARDS)
    assert drained.id == d.id
    assert (await agent_directory.get_by_id(agent.id)).active_count == 3
