import asyncio
import logging
import re

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from annotations.application.services import load_snapshot
from annotations.infrastructure.redis_pubsub import snapshot_message, subscribe
from annotations.infrastructure.snapshot_repository import DbSnapshotRepository
from annotations.interfaces.routes import DOCUMENT_KEY_PATTERN
from shared.infrastructure.database import async_session
from shared.infrastructure.redis import get_redis_pool

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/snapshots/{document_key}")
async def snapshot_feed(websocket: WebSocket, document_key: str):
    """Push the current snapshot on connect, then every published update."""
    if not re.fullmatch(DOCUMENT_KEY_PATTERN, document_key):
        await websocket.close(code=4000, reason="Invalid document key")
        return

    await websocket.accept()

    async def on_redis_message(data: str):
        try:
            await websocket.send_text(data)
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Dropped update for closed socket on %s", document_key)

    sub_task = await subscribe(get_redis_pool(), document_key, on_redis_message)

    try:
        async with async_session() as db:
            repo = DbSnapshotRepository(db)
            snapshot = await load_snapshot(repo, document_key)
        await websocket.send_text(snapshot_message(document_key, snapshot))

        # Inbound frames are ignored; the loop only detects disconnects.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Subscriber left %s", document_key)
    finally:
        sub_task.cancel()
        try:
            await sub_task
        except asyncio.CancelledError:
            pass
