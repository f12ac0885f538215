# findme/services/realtime.py
"""
Change feed for new chat messages.

Subscribers register interest in inserts addressed to one receiver id and
get every matching message pushed as it is published. There is no
acknowledgement, backpressure or replay: a subscriber that is not
connected when a message is published never sees it (the conversation
endpoint is the catch-up path).

Backends (REALTIME_BACKEND):
- "memory": asyncio queues inside this process (default, single worker)
- "redis": Redis pub/sub, one channel per receiver, for multi-worker deployments
"""
import asyncio
import json
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Set

import redis.asyncio as aioredis
from fastapi.encoders import jsonable_encoder

from findme.core.config import settings

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "messages:"


def channel_for(receiver_id: str) -> str:
    return f"{CHANNEL_PREFIX}{receiver_id}"


class LocalMessageFeed:
    def __init__(self):
        self._subscribers: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    async def publish(self, message: Dict[str, Any]) -> int:
        queues = list(self._subscribers.get(message["receiver_id"], ()))
        for q in queues:
            q.put_nowait(jsonable_encoder(message))
        return len(queues)

    @asynccontextmanager
    async def subscribe(self, receiver_id: str):
        q: asyncio.Queue = asyncio.Queue()
        self._subscribers[receiver_id].add(q)

        async def _messages() -> AsyncIterator[Dict[str, Any]]:
            while True:
                yield await q.get()

        try:
            yield _messages()
        finally:
            subs = self._subscribers.get(receiver_id)
            if subs is not None:
                subs.discard(q)
                if not subs:
                    del self._subscribers[receiver_id]


class RedisMessageFeed:
    def __init__(self, client: Optional[aioredis.Redis] = None):
        self._client = client

    def _get_redis_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return self._client

    async def publish(self, message: Dict[str, Any]) -> int:
        client = self._get_redis_client()
        payload = json.dumps(jsonable_encoder(message), ensure_ascii=False)
        return await client.publish(channel_for(message["receiver_id"]), payload)

    @asynccontextmanager
    async def subscribe(self, receiver_id: str):
        client = self._get_redis_client()
        channel = channel_for(receiver_id)
        pubsub = client.pubsub()
        await pubsub.subscribe(channel)

        async def _messages() -> AsyncIterator[Dict[str, Any]]:
            async for item in pubsub.listen():
                # skip subscribe/unsubscribe confirmations
                if item.get("type") != "message":
                    continue
                try:
                    yield json.loads(item["data"])
                except (TypeError, ValueError):
                    logger.warning("Dropping malformed feed payload on %s", channel)

        try:
            yield _messages()
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()


_feed = None


def get_feed():
    global _feed
    if _feed is None:
        backend = (settings.REALTIME_BACKEND or "memory").lower()
        if backend == "redis":
            _feed = RedisMessageFeed()
        elif backend == "memory":
            _feed = LocalMessageFeed()
        else:
            raise RuntimeError(f"Unknown REALTIME_BACKEND {backend!r} (expected 'memory' or 'redis')")
        logger.info("Realtime message feed: %s", backend)
    return _feed


def reset_feed(feed=None):
    """Swap the process-wide feed (used at shutdown and in tests)."""
    global _feed
    _feed = feed
