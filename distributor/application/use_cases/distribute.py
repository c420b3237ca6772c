"""Distributor — admission control on submit, backlog draining on complete."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from distributor.application.ports.agent_directory import AgentDirectory
from distributor.application.ports.attendance_repo import AttendanceRepository
from distributor.application.ports.change_notifier import ChangeNotifier, publish_quietly
from distributor.application.ports.team_backlog import TeamBacklog
from distributor.application.ports.team_lock import TeamLockProvider
from distributor.domain.entities.attendance import Attendance
from distributor.domain.entities.change_event import ChangeEvent
from distributor.domain.errors import (
    CapacityInvariantViolation,
    InvalidStateError,
    NotFoundError,
)
from distributor.domain.policies.submission_rules import parse_team, require_text
from distributor.domain.value_objects.enums import ChangeKind, Team

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Distributor:
    """Single authority connecting the attendance lifecycle to agent capacity.

    Every mutation of agent capacity or of a team's backlog happens inside
    that team's critical section, obtained from the TeamLockProvider.
    Teams never wait on each other.
    """

    def __init__(
        self,
        attendance_repo: AttendanceRepository,
        agent_directory: AgentDirectory,
        backlog: TeamBacklog,
        locks: TeamLockProvider,
        notifier: ChangeNotifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._attendances = attendance_repo
        self._agents = agent_directory
        self._backlog = backlog
        self._locks = locks
        self._notifier = notifier
        self._clock = clock

    async def submit(
        self,
        team: Team | str,
        customer_name: str,
        subject: str,
    ) -> Attendance:
        """Create an attendance and assign it right away, or queue it.

        Pipeline:
        1. Validate the payload (nothing is stored on failure)
        2. Persist as WAITING
        3. Charge an available agent of the team and mark ASSIGNED
        4. Otherwise append to the team backlog
        """
        team = parse_team(team)
        customer_name = require_text(customer_name, "customer_name")
        subject = require_text(subject, "subject")

        async with self._locks.lock(team):
            attendance = await self._attendances.save(
                Attendance(
                    id=None,
                    team=team,
                    customer_name=customer_name,
                    subject=subject,
                    created_at=self._clock(),
                )
            )
            logger.info(
                "Attendance %s created: team=%s, customer=%s",
                attendance.id, team.value, customer_name,
            )

            agent = await self._agents.find_available(team)
            if agent is None:
                await self._enqueue(attendance)
                return attendance

            if not await self._agents.increment(agent.id):
                # Keep the attendance reachable before surfacing the fault
                await self._enqueue(attendance)
                raise self._capacity_violation("charge", agent.id, attendance.id)

            try:
                await self._assign(attendance, agent.id, ChangeKind.ASSIGNED)
            except Exception:
                # Stored record is still WAITING, so it belongs in the backlog
                await self._backlog.enqueue(team, attendance.id)
                raise
            return attendance

    async def complete(self, attendance_id: int) -> Attendance:
        """Finish an ASSIGNED attendance, release its agent and drain the backlog."""
        existing = await self._attendances.get_by_id(attendance_id)
        if existing is None:
            raise NotFoundError(f"Attendance not found: {attendance_id}")
        team = existing.team

        async with self._locks.lock(team):
            # Re-read under the lock: a concurrent completion may have won
            attendance = await self._attendances.get_by_id(attendance_id)
            if attendance is None:
                raise NotFoundError(f"Attendance not found: {attendance_id}")
            if not attendance.is_assigned():
                raise InvalidStateError(
                    f"Attendance {attendance_id} is {attendance.status.value}, "
                    f"only ASSIGNED attendances can be completed"
                )

            if not await self._agents.decrement(attendance.agent_id):
                raise self._capacity_violation("release", attendance.agent_id, attendance.id)

            attendance.complete(self._clock())
            try:
                await self._attendances.update(attendance)
            except Exception:
                logger.error(
                    "Persisting completion of attendance %s failed, recharging agent %s",
                    attendance.id, attendance.agent_id,
                )
                await self._agents.increment(attendance.agent_id)
                raise
            logger.info(
                "Attendance %s completed: agent=%s, team=%s",
                attendance.id, attendance.agent_id, team.value,
            )
            self._notify(ChangeKind.COMPLETED, attendance)

            await self._drain(team)

        return attendance

    async def drain(self, team: Team | str) -> list[Attendance]:
        """Run the drain step on its own, e.g. after capacity was added."""
        team = parse_team(team)
        async with self._locks.lock(team):
            return await self._drain(team)

    async def clear_backlog(self, team: Team | str) -> int:
        """Administrative: drop every queued id of *team*.

        The affected attendances stay WAITING but are no longer reachable
        through the backlog.
        """
        team = parse_team(team)
        async with self._locks.lock(team):
            removed = await self._backlog.clear(team)
        logger.warning("Backlog %s cleared: %d attendances removed", team.value, removed)
        return removed

    # ─── Steps (caller holds the team lock) ─────────────────────────────

    async def _drain(self, team: Team) -> list[Attendance]:
        """Assign queued attendances of *team*, head first, while agents have room."""
        drained: list[Attendance] = []
        while await self._backlog.size(team) > 0:
            agent = await self._agents.find_available(team)
            if agent is None:
                break
            if not await self._agents.increment(agent.id):
                raise self._capacity_violation("charge", agent.id, None)

            attendance_id = await self._backlog.dequeue(team)
            attendance = (
                await self._attendances.get_by_id(attendance_id)
                if attendance_id is not None
                else None
            )
            if attendance is None or not attendance.is_waiting():
                logger.warning(
                    "Skipping stale backlog entry %s for team %s", attendance_id, team.value
                )
                await self._agents.decrement(agent.id)
                continue

            try:
                await self._assign(attendance, agent.id, ChangeKind.DRAINED)
            except Exception:
                await self._backlog.requeue(team, attendance.id)
                raise
            drained.append(attendance)

        if drained:
            logger.info(
                "Drained %d attendances from %s backlog (%d left)",
                len(drained), team.value, await self._backlog.size(team),
            )
        return drained

    async def _assign(self, attendance: Attendance, agent_id: int, kind: ChangeKind) -> None:
        """Persist the assignment of an already charged agent.

        On a failed write the charge is given back before the error
        propagates; restoring the backlog is up to the caller.
        """
        attendance.assign_to(agent_id, self._clock())
        try:
            await self._attendances.update(attendance)
        except Exception:
            logger.error(
                "Persisting assignment of attendance %s failed, releasing agent %s",
                attendance.id, agent_id,
            )
            await self._agents.decrement(agent_id)
            raise
        logger.info(
            "Attendance %s → agent %s (team=%s)",
            attendance.id, agent_id, attendance.team.value,
        )
        self._notify(kind, attendance)

    async def _enqueue(self, attendance: Attendance) -> None:
        await self._backlog.enqueue(attendance.team, attendance.id)
        logger.info(
            "Attendance %s queued: no agent available in %s",
            attendance.id, attendance.team.value,
        )
        logger.debug(
            "Backlog %s now holds %d attendances",
            attendance.team.value, await self._backlog.size(attendance.team),
        )
        self._notify(ChangeKind.QUEUED, attendance)

    def _notify(self, kind: ChangeKind, attendance: Attendance) -> None:
        publish_quietly(
            self._notifier,
            ChangeEvent(
                kind=kind,
                team=attendance.team,
                occurred_at=self._clock(),
                attendance_id=attendance.id,
                agent_id=attendance.agent_id,
            ),
        )

    @staticmethod
    def _capacity_violation(
        operation: str, agent_id: int | None, attendance_id: int | None
    ) -> CapacityInvariantViolation:
        logger.error(
            "Capacity ledger refused %s: agent=%s, attendance=%s",
            operation, agent_id, attendance_id,
        )
        return CapacityInvariantViolation(
            f"Capacity ledger refused {operation} for agent {agent_id}"
        )
