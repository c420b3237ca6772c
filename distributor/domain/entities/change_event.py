"""ChangeEvent — what the distributor announces after every state change."""

from dataclasses import dataclass
from datetime import datetime

from distributor.domain.value_objects.enums import ChangeKind, Team


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    team: Team
    occurred_at: datetime
    attendance_id: int | None = None
    agent_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "team": self.team.value,
            "attendance_id": self.attendance_id,
            "agent_id": self.agent_id,
            "occurred_at": self.occurred_at.isoformat(),
        }
