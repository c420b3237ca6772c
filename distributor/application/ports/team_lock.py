"""Port interface for the per-team critical section."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from distributor.domain.value_objects.enums import Team


class TeamLockProvider(ABC):
    @abstractmethod
    def lock(self, team: Team) -> AbstractAsyncContextManager:
        """Return an async context manager holding *team*'s critical section.

        Locks of different teams are independent.
        """
        ...
