"""In-process fan-out of change events to WebSocket subscribers."""

from __future__ import annotations

import asyncio
import logging

from distributor.application.ports.change_notifier import ChangeNotifier
from distributor.domain.entities.change_event import ChangeEvent

logger = logging.getLogger(__name__)


class ChangeBroadcaster(ChangeNotifier):
    """Each subscriber owns a bounded queue; a full queue loses the event.

    publish() never awaits, so a slow dashboard can never hold up the
    distributor.
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue[ChangeEvent]] = set()

    def subscribe(self) -> asyncio.Queue[ChangeEvent]:
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        logger.debug("Subscriber added (%d active)", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ChangeEvent]) -> None:
        self._subscribers.discard(queue)
        logger.debug("Subscriber removed (%d active)", len(self._subscribers))

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    "Subscriber queue full, dropping %s event for %s",
                    event.kind.value, event.team.value,
                )
