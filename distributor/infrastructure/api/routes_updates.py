"""WebSocket push channel for live dashboards."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from distributor.domain.entities.change_event import ChangeEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["updates"])


async def _forward(websocket: WebSocket, queue: asyncio.Queue[ChangeEvent]) -> None:
    while True:
        event = await queue.get()
        await websocket.send_json(event.to_dict())


async def _until_disconnect(websocket: WebSocket) -> None:
    # Incoming frames are ignored; receive_text raises once the client is gone
    while True:
        await websocket.receive_text()


@router.websocket("/ws/updates")
async def stream_updates(websocket: WebSocket):
    """Forward every change event to the connected client as JSON.

    The socket is read concurrently so an idle client that goes away is
    unsubscribed at once instead of on the next event.
    """
    broadcaster = websocket.app.state.container.broadcaster
    queue = broadcaster.subscribe()
    try:
        await websocket.accept()
        tasks = {
            asyncio.create_task(_forward(websocket, queue)),
            asyncio.create_task(_until_disconnect(websocket)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()
    except WebSocketDisconnect:
        logger.debug("Dashboard client disconnected")
    finally:
        broadcaster.unsubscribe(queue)
