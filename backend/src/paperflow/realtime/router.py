"""WebSocket endpoint streaming paper change events.

Clients connect to ``/ws/papers?token=<bearer token>`` and receive
``{"event": "paperUpdated" | "paperDeleted", "data": ...}`` messages in
publish order. Nothing is replayed: a client that (re)connects should
re-fetch the papers it displays.
"""

import asyncio
import logging
from typing import Optional

import anyio
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..auth.dependencies import resolve_user
from ..database import get_db
from .hub import Broadcaster, QueueSubscriber, get_broadcaster

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _forward_events(
    websocket: WebSocket, subscriber: QueueSubscriber, scope: anyio.CancelScope
) -> None:
    try:
        while True:
            change = await subscriber.next_event()
            await websocket.send_json(change.to_message())
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.info(f"Realtime send stopped: {e!r}")
    scope.cancel()


async def _drain_client(websocket: WebSocket, scope: anyio.CancelScope) -> None:
    """Consume client frames until the client goes away, then end the connection."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    scope.cancel()


@router.websocket("/ws/papers")
async def paper_events(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    try:
        user = await run_in_threadpool(resolve_user, token or "", db)
    except HTTPException as e:
        logger.info(f"Rejected realtime connection: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        db.close()

    # Register before accepting so no event published after the handshake is missed
    subscriber = QueueSubscriber(asyncio.get_running_loop())
    handle = broadcaster.subscribe(subscriber)
    try:
        await websocket.accept()
        logger.info(f"Realtime client connected: user={user.id}")

        async with anyio.create_task_group() as tg:
            tg.start_soon(_forward_events, websocket, subscriber, tg.cancel_scope)
            tg.start_soon(_drain_client, websocket, tg.cancel_scope)
        logger.info(f"Realtime client disconnected: user={user.id}")
    finally:
        broadcaster.unsubscribe(handle)
