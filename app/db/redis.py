"""Redis connection for delete markers and token blacklisting."""

import redis.asyncio as redis

from app.core.config import settings

# Global Redis client
redis_client: redis.Redis | None = None


async def connect_redis() -> None:
    """Connect to Redis."""
    global redis_client

    redis_client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
        retry_on_timeout=True,
    )

    # Test connection
    try:
        await redis_client.ping()
        print(f"Connected to Redis: {settings.redis_url}")
    except Exception as e:
        print(f"Failed to connect to Redis: {e}")
        raise


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client

    if redis_client:
        await redis_client.close()
        redis_client = None
        print("Redis connection closed")


def get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if redis_client is None:
        raise RuntimeError("Redis is not connected")
    return redis_client


def is_redis_connected() -> bool:
    return redis_client is not None


class RedisCache:
    """Helper class for common Redis operations."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def _key(self, key: str) -> str:
        """Build full key with prefix."""
        return f"{self.prefix}:{key}" if self.prefix else key

    async def set(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> None:
        """Set value with optional TTL (seconds)."""
        client = get_redis()
        if ttl:
            await client.setex(self._key(key), ttl, value)
        else:
            await client.set(self._key(key), value)

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        """Set value only if the key does not exist. Returns True when set."""
        client = get_redis()
        return bool(await client.set(self._key(key), value, nx=True, ex=ttl))

    async def delete(self, key: str) -> None:
        """Delete key."""
        client = get_redis()
        await client.delete(self._key(key))

    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        client = get_redis()
        return await client.exists(self._key(key)) > 0


# Pre-configured cache instances
delete_marker_cache = RedisCache(prefix="feedback_delete")
jwt_blacklist = RedisCache(prefix="jwt_blacklist")
