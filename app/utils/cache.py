import json
import logging
from typing import Any, Callable, Coroutine, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


async def init_redis(url: str) -> None:
    """
    Initialize global redis client. Call on FastAPI startup.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(url, decode_responses=True)


def set_redis(client: Optional[redis.Redis]) -> None:
    """Install an already constructed client (or clear it with ``None``)."""
    global _redis_client
    _redis_client = client


async def close_redis() -> None:
    """
    Close global redis connection. Call on FastAPI shutdown.
    """
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def get_redis() -> redis.Redis:
    """
    Return initialized redis client or raise.
    """
    if _redis_client is None:
        raise RuntimeError("Redis is not initialized. Call init_redis on startup.")
    return _redis_client


async def cache_get(
    key: str,
    ttl: int,
    db_loader: Callable[[], Coroutine[Any, Any, Any]],
    serializer: Callable[[Any], str],
    deserializer: Callable[[str], Any] = lambda s: json.loads(s),
) -> Any:
    """
    Caching-aside helper:
    - Try to read `key` from Redis.
    - If present, return deserialized value.
    - If missing, call async db_loader(), serialize with `serializer`, set with TTL and return DB object.
    A Redis failure degrades to a plain database read.
    """
    r = get_redis()
    try:
        cached = await r.get(key)
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return await db_loader()
    if cached is not None:
        return deserializer(cached)

    obj = await db_loader()
    if obj is None:
        # None is not cached; a later create must be visible immediately
        return None

    try:
        await r.set(key, serializer(obj), ex=ttl)
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")
    return obj


async def invalidate_cache(key: str) -> None:
    """
    Delete key from cache (explicit invalidation).
    """
    r = get_redis()
    try:
        await r.delete(key)
    except RedisError as e:
        # The write is already committed; the entry ages out with its TTL
        logger.error(f"Cache invalidation failed for {key}: {e}")
