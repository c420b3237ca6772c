"""Port interface for the per-team FIFO backlog."""

from abc import ABC, abstractmethod

from distributor.domain.value_objects.enums import Team


class TeamBacklog(ABC):
    @abstractmethod
    async def enqueue(self, team: Team, attendance_id: int) -> None:
        """Append to the tail. Unbounded."""
        ...

    @abstractmethod
    async def requeue(self, team: Team, attendance_id: int) -> None:
        """Put an id back at the head, ahead of everything queued."""
        ...

    @abstractmethod
    async def dequeue(self, team: Team) -> int | None:
        """Remove and return the head, or None when empty."""
        ...

    @abstractmethod
    async def peek_all(self, team: Team) -> list[int]:
        """Ordered snapshot, head first. Must not mutate the backlog."""
        ...

    @abstractmethod
    async def size(self, team: Team) -> int:
        ...

    @abstractmethod
    async def clear(self, team: Team) -> int:
        """Empty the backlog and return how many ids were dropped."""
        ...
