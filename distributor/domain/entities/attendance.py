"""Attendance entity — a customer request routed to an agent or queued."""

from dataclasses import dataclass
from datetime import datetime

from distributor.domain.errors import InvalidStateError
from distributor.domain.value_objects.enums import AttendanceStatus, Team


@dataclass
class Attendance:
    id: int | None
    team: Team
    customer_name: str
    subject: str
    status: AttendanceStatus = AttendanceStatus.WAITING
    agent_id: int | None = None
    created_at: datetime | None = None
    assigned_at: datetime | None = None
    completed_at: datetime | None = None

    def is_waiting(self) -> bool:
        return self.status == AttendanceStatus.WAITING

    def is_assigned(self) -> bool:
        return self.status == AttendanceStatus.ASSIGNED

    def assign_to(self, agent_id: int, at: datetime) -> None:
        """WAITING → ASSIGNED. The agent reference is set once and kept for good."""
        if self.status != AttendanceStatus.WAITING:
            raise InvalidStateError(
                f"Attendance {self.id} cannot be assigned from status {self.status.value}"
            )
        self.status = AttendanceStatus.ASSIGNED
        self.agent_id = agent_id
        self.assigned_at = at

    def complete(self, at: datetime) -> None:
        """ASSIGNED → COMPLETED."""
        if self.status != AttendanceStatus.ASSIGNED:
            raise InvalidStateError(
                f"Attendance {self.id} cannot be completed from status {self.status.value}"
            )
        self.status = AttendanceStatus.COMPLETED
        self.completed_at = at
