"""Port interface for change notifications (live dashboards)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from distributor.domain.entities.change_event import ChangeEvent

logger = logging.getLogger(__name__)


class ChangeNotifier(ABC):
    @abstractmethod
    def publish(self, event: ChangeEvent) -> None:
        """Fire-and-forget. Must not block."""
        ...


def publish_quietly(notifier: ChangeNotifier | None, event: ChangeEvent) -> None:
    """Publish *event* without ever letting a notifier failure reach the caller."""
    if notifier is None:
        return
    try:
        notifier.publish(event)
    except Exception:
        logger.warning("Change notification %s dropped", event.kind.value, exc_info=True)
