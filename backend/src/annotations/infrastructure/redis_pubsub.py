import asyncio
import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from redis.asyncio import Redis

from annotations.domain.entities import Snapshot
from annotations.infrastructure.serialization import snapshot_to_dict
from shared.config import settings

logger = logging.getLogger(__name__)


def channel_name(document_key: str) -> str:
    return f"{settings.SNAPSHOT_CHANNEL_PREFIX}:{document_key}:snapshots"


def snapshot_message(document_key: str, snapshot: Snapshot) -> str:
    return json.dumps({"documentKey": document_key, **snapshot_to_dict(snapshot)})


async def publish_snapshot(redis: Redis, document_key: str, snapshot: Snapshot) -> None:
    await redis.publish(channel_name(document_key), snapshot_message(document_key, snapshot))


async def subscribe(
    redis: Redis,
    document_key: str,
    callback: Callable[[str], Coroutine[Any, Any, None]],
) -> asyncio.Task:
    """Subscribe to snapshot updates. Returns a task that can be cancelled to unsubscribe."""
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel_name(document_key))

    async def _listen():
        try:
            async for message in pubsub.listen():
                if message["type"] == "message":
                    await callback(message["data"])
        except asyncio.CancelledError:
            logger.debug("Stopped listening on %s", channel_name(document_key))
        finally:
            await pubsub.unsubscribe(channel_name(document_key))
            await pubsub.aclose()

    return asyncio.create_task(_listen())
