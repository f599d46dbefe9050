# school_erp/core/cache.py
"""Redis cache for serialised read models (class lists, stats)."""
import json
import logging
from typing import Any, Optional, Union
from datetime import timedelta
import redis.asyncio as redis
from redis.exceptions import RedisError
from ..core.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """JSON values in Redis. Every call is a no-op when disabled and a miss on Redis errors."""

    def __init__(self, enabled: bool = True):
        self.redis: Optional[redis.Redis] = None
        self.enabled = enabled

    async def connect(self):
        if self.enabled and not self.redis:
            self.redis = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)

    async def disconnect(self):
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def _client(self) -> Optional[redis.Redis]:
        if not self.enabled:
            return None
        await self.connect()
        return self.redis

    async def get(self, key: str) -> Optional[Any]:
        client = await self._client()
        if client is None:
            return None
        try:
            value = await client.get(key)
        except RedisError as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None
        return json.loads(value) if value else None

    async def set(self, key: str, value: Any, expire: Optional[Union[int, timedelta]] = None) -> bool:
        client = await self._client()
        if client is None:
            return False
        if isinstance(expire, timedelta):
            expire = int(expire.total_seconds())
        serialized = json.dumps(value, default=str)
        try:
            if expire:
                return bool(await client.setex(key, expire, serialized))
            return bool(await client.set(key, serialized))
        except RedisError as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern."""
        client = await self._client()
        if client is None:
            return 0
        deleted = 0
        try:
            async for key in client.scan_iter(match=pattern):
                deleted += await client.delete(key)
        except RedisError as e:
            logger.warning(f"Cache pattern delete failed for {pattern}: {e}")
        return deleted

    async def ping(self) -> bool:
        client = await self._client()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except RedisError as e:
            logger.warning(f"Cache ping failed: {e}")
            return False


cache = CacheManager(enabled=settings.cache_enabled)


async def get_cache():
    """Dependency to get cache instance."""
    return cache
