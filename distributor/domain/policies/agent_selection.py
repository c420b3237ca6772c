"""AgentSelectionPolicy — deterministic pick among agents with spare capacity."""

from __future__ import annotations

from collections.abc import Iterable

from distributor.domain.entities.agent import Agent


def pick_available(candidates: Iterable[Agent]) -> Agent | None:
    """Pick the agent that should take the next attendance.

    1. Drop agents that are already at full capacity.
    2. Sort the rest by (active_count ASC, id ASC) so load spreads evenly
       and ties always resolve the same way.
    3. Return the first one, or None when nobody has room.

    There is no fairness guarantee beyond this ordering.
    """
    available = [a for a in candidates if a.is_available()]
    if not available:
        return None
    return min(available, key=lambda a: (a.active_count, a.id))
