"""Agent entity — a worker that handles attendances for a single team."""

from dataclasses import dataclass

from distributor.domain.value_objects.enums import Team

MAX_CAPACITY = 3


@dataclass
class Agent:
    id: int | None
    name: str
    team: Team
    active_count: int = 0

    def is_available(self) -> bool:
        return self.active_count < MAX_CAPACITY

    def charge(self) -> bool:
        """Take one unit of capacity. Returns False (no-op) when already full."""
        if self.active_count >= MAX_CAPACITY:
            return False
        self.active_count += 1
        return True

    def release(self) -> bool:
        """Give back one unit of capacity. Returns False (no-op) when already idle."""
        if self.active_count <= 0:
            return False
        self.active_count -= 1
        return True
