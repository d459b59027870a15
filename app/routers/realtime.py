"""
Realtime change feed.

``/ws`` pushes one JSON message per committed mutation.  On connect the
observer first receives a ``database_loaded`` snapshot of the current
dataset; every later message is a ``BroadcastEvent``.  Messages sent by the
client are ignored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from app.routers.deps import RepositoryDep
from app.schemas.realtime import BroadcastEvent
from app.services.broadcast import BroadcastHub, Subscription, get_hub
from app.services.storage import PersistenceError
from app.utils.constants import EVENT_DATABASE_LOADED

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

HubDep = Annotated[BroadcastHub, Depends(get_hub)]


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        event = await subscription.get()
        await websocket.send_json(event)


async def _drain(websocket: WebSocket) -> None:
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def websocket_feed(websocket: WebSocket, repository: RepositoryDep, hub: HubDep) -> None:
    await websocket.accept()
    # Subscribe before the snapshot so no commit can slip in between.
    subscription = hub.subscribe()
    try:
        try:
            dataset = await run_in_threadpool(repository.load)
        except PersistenceError as exc:
            logger.error("Cannot send initial snapshot: %s", exc)
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        document = dataset.to_document()
        snapshot = BroadcastEvent(
            type=EVENT_DATABASE_LOADED,
            message="Database loaded successfully",
            data=document,
            database=document,
        )
        await websocket.send_json(snapshot.model_dump(mode="json"))

        tasks = {
            asyncio.create_task(_forward(websocket, subscription)),
            asyncio.create_task(_drain(websocket)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Observer %d closed with error: %s", subscription.id, exc)
    except WebSocketDisconnect:
        logger.debug("Observer %d left before the snapshot was sent", subscription.id)
    finally:
        hub.unsubscribe(subscription)
