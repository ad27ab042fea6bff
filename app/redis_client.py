# app/redis_client.py
import redis.asyncio as redis
from .config import settings
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Async Redis client used for caching and room broadcasts.

    Every operation swallows connection errors and returns a falsy value,
    so callers degrade to the database path when Redis is down.
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.redis: Optional[redis.Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def connect(self):
        """Initialize Redis connection with connection pooling"""
        try:
            if self.redis:
                logger.warning("⚠️ Redis already connected")
                return

            self.pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=50,
                socket_keepalive=True,
                socket_connect_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            self.redis = redis.Redis(connection_pool=self.pool)
            await self.redis.ping()

            logger.info("✅ Redis connected with connection pooling")

        except Exception as e:
            logger.error(f"❌ Redis connection failed: {e}")
            self.redis = None
            self.pool = None
            raise

    async def disconnect(self):
        """Close Redis connection and pool"""
        try:
            if self.redis:
                await self.redis.aclose()
            if self.pool:
                await self.pool.disconnect()
            self.redis = None
            self.pool = None
            logger.info("✅ Redis connection closed")
        except Exception as e:
            logger.error(f"❌ Redis disconnect error: {e}")

    async def _ensure_connected(self):
        if not self.redis:
            await self.connect()

    async def ping(self) -> bool:
        try:
            await self._ensure_connected()
            return await self.redis.ping()
        except Exception as e:
            logger.error(f"❌ Redis ping failed: {e}")
            return False

    async def get(self, key: str) -> Optional[Any]:
        """Get value from Redis with JSON deserialization"""
        try:
            await self._ensure_connected()

            value = await self.redis.get(key)
            if value is None:
                return None
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value

        except Exception as e:
            logger.error(f"❌ Redis GET error for key '{key}': {e}")
            return None

    async def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        """
        Set value in Redis with JSON serialization.

        Args:
            key: Redis key
            value: Value to store (JSON serialized unless already a string)
            expire: Expiration in seconds (default: REDIS_CACHE_EXPIRATION)
        """
        try:
            await self._ensure_connected()

            if expire is None:
                expire = settings.REDIS_CACHE_EXPIRATION

            serialized = value if isinstance(value, str) else json.dumps(value, default=str)
            return bool(await self.redis.setex(key, expire, serialized))

        except Exception as e:
            logger.error(f"❌ Redis SET error for key '{key}': {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._ensure_connected()
            return bool(await self.redis.delete(key))
        except Exception as e:
            logger.error(f"❌ Redis DELETE error for key '{key}': {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern"""
        try:
            await self._ensure_connected()
            removed = 0
            async for key in self.redis.scan_iter(match=pattern, count=500):
                removed += await self.redis.delete(key)
            if removed:
                logger.info(f"🗑️ Redis removed {removed} keys for '{pattern}'")
            return removed
        except Exception as e:
            logger.error(f"❌ Redis DELETE pattern error for '{pattern}': {e}")
            return 0

    async def publish(self, channel: str, message: Any) -> int:
        """Publish a JSON message, returns number of receivers"""
        await self._ensure_connected()
        payload = message if isinstance(message, str) else json.dumps(message, default=str)
        return await self.redis.publish(channel, payload)

    async def get_stats(self) -> dict:
        try:
            await self._ensure_connected()
            info = await self.redis.info()
            return {
                "connected": True,
                "version": info.get("redis_version", "unknown"),
                "uptime_seconds": info.get("uptime_in_seconds", 0),
                "connected_clients": info.get("connected_clients", 0),
                "used_memory": info.get("used_memory_human", "0B"),
                "keyspace": info.get("db0", {}),
            }
        except Exception as e:
            logger.error(f"❌ Redis stats error: {e}")
            return {"connected": False, "error": str(e)}


# Global Redis client instance
redis_client = RedisClient()


async def get_redis_stats() -> dict:
    return await redis_client.get_stats()


__all__ = ['RedisClient', 'redis_client', 'get_redis_stats']
