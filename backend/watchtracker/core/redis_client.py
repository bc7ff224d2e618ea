"""
Redis clients.

Async clients are bound to the event loop that created them: every Celery task
runs its sweep in a fresh `asyncio.run` loop, and a client from a dead loop
fails with "attached to a different loop". The sync client is shared.
"""
import asyncio
import weakref
from functools import lru_cache

import redis as redis_sync
from redis import asyncio as aioredis

from watchtracker.core.config import settings

_POOL_OPTIONS = dict(
    decode_responses=True,
    socket_connect_timeout=5,
    socket_timeout=5,
    retry_on_timeout=True,
)

# loop -> client; entries go away with their loop
_clients_by_loop: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, aioredis.Redis]" = weakref.WeakKeyDictionary()


def get_redis() -> aioredis.Redis:
    """Async client for the running event loop."""
    loop = asyncio.get_running_loop()
    client = _clients_by_loop.get(loop)
    if client is None:
        pool = aioredis.ConnectionPool.from_url(settings.redis_url, max_connections=20, **_POOL_OPTIONS)
        client = aioredis.Redis(connection_pool=pool)
        _clients_by_loop[loop] = client
    return client


async def close_redis() -> None:
    """Close the running loop's client, if one was created. Call before the loop ends."""
    client = _clients_by_loop.pop(asyncio.get_running_loop(), None)
    if client is not None:
        await client.aclose()


@lru_cache(maxsize=1)
def get_redis_sync() -> redis_sync.Redis:
    """Process-wide sync client, used by Celery callbacks."""
    pool = redis_sync.ConnectionPool.from_url(settings.redis_url, max_connections=10, **_POOL_OPTIONS)
    return redis_sync.Redis(connection_pool=pool)
