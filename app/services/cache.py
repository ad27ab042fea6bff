import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from ..redis_client import RedisClient, redis_client

logger = logging.getLogger(__name__)

Producer = Callable[[], Union[Any, Awaitable[Any]]]


class CacheTTL:
    """Expiry per key class, in seconds"""
    BIBLE = 86400
    HYMN_LIST = 300
    HYMN_STATS = 600
    SEARCH = 120
    DEVOTIONALS = 120
    FORUMS = 60
    SONGS = 300
    ANALYTICS = 600


def make_key(namespace: str, **params: Any) -> str:
    """
    Deterministic cache key: namespace followed by params sorted by name.
    None values are dropped so optional filters do not fragment the cache.
    """
    parts = [
        f"{name}={params[name]}"
        for name in sorted(params)
        if params[name] is not None
    ]
    if not parts:
        return f"cache:{namespace}"
    return f"cache:{namespace}:" + "&".join(parts)


class CacheService:
    def __init__(self, client: Optional[RedisClient] = None):
        self.redis = client or redis_client
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> Optional[Any]:
        return await self.redis.get(key)

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        return await self.redis.set(key, value, expire=ttl)

    async def get_or_set(self, key: str, producer: Producer, ttl: int) -> Any:
        """
        Return the cached value for key, or run producer and cache its result.
        Producer may be sync or async. None results are never cached.
        """
        cached = await self.redis.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug(f"Cache hit: {key}")
            return cached

        self.misses += 1
        value = producer()
        if inspect.isawaitable(value):
            value = await value

        if value is not None:
            await self.redis.set(key, value, expire=ttl)
        return value

    async def invalidate(self, key: str) -> bool:
        return await self.redis.delete(key)

    async def invalidate_namespace(self, namespace: str) -> int:
        return await self.redis.delete_pattern(f"cache:{namespace}*")

    def get_stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total, 4) if total else 0.0,
        }


cache_service = CacheService()


def get_cache() -> CacheService:
    """FastAPI dependency; tests override it with an in-memory cache"""
    return cache_service
