# lexiflow/adapters/cache/redis_cache.py
from typing import Optional

import structlog
from redis.asyncio import Redis, from_url

logger = structlog.get_logger()


class RedisCache:
    """
    Edge cache adapter for Redis.
    Values are opaque strings; expiry is delegated to Redis (`SET ... EX`).
    """

    def __init__(self, redis_url: str, client: Optional[Redis] = None) -> None:
        self.redis_url = redis_url
        self._redis: Optional[Redis] = client

    async def connect(self) -> Redis:
        """Initializes the Redis connection pool."""
        if self._redis is None:
            logger.info("redis_cache_connecting", url=self.redis_url)
            self._redis = from_url(self.redis_url, decode_responses=True)
        return self._redis

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> Optional[str]:
        redis = await self.connect()
        return await redis.get(key)

    async def put(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        redis = await self.connect()
        if ttl:
            await redis.set(key, value, ex=ttl)
        else:
            await redis.set(key, value)
