"""Port interface for attendance persistence."""

from abc import ABC, abstractmethod

from distributor.domain.entities.attendance import Attendance
from distributor.domain.value_objects.enums import AttendanceStatus, Team


class AttendanceRepository(ABC):
    @abstractmethod
    async def save(self, attendance: Attendance) -> Attendance:
        """Persist a new attendance and assign its id (monotonic, never reused)."""
        ...

    @abstractmethod
    async def get_by_id(self, attendance_id: int) -> Attendance | None:
        ...

    @abstractmethod
    async def update(self, attendance: Attendance) -> Attendance:
        ...

    @abstractmethod
    async def get_all(self) -> list[Attendance]:
        ...

    @abstractmethod
    async def get_by_team(self, team: Team) -> list[Attendance]:
        ...

    @abstractmethod
    async def get_by_status(self, status: AttendanceStatus) -> list[Attendance]:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backing store is reachable."""
        ...
