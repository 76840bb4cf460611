"""
Caching utilities using Redis, with an in-process TTL cache when Redis is not configured.
"""

import json
from typing import Optional, Any

import redis.asyncio as aioredis
from cachetools import TTLCache
from loguru import logger

from bonlog.core.config import settings

# Global Redis client
_redis_client: Optional[aioredis.Redis] = None


async def get_redis_client() -> aioredis.Redis:
    """
    Get or create Redis client.

    Returns:
        Redis client instance
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis_client():
    """Close Redis client connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


class CacheService:
    """JSON cache backed by Redis, or by a TTLCache when no Redis URL is set."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        default_ttl: int = 300,
        maxsize: int = 1000,
    ):
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self._client: Optional[aioredis.Redis] = None
        self._local: Optional[TTLCache] = None
        if not redis_url:
            self._local = TTLCache(maxsize=maxsize, ttl=default_ttl)

    @property
    def backend(self) -> str:
        return "redis" if self.redis_url else "memory"

    async def _get_client(self) -> aioredis.Redis:
        """Get Redis client."""
        if self._client is None:
            self._client = await get_redis_client()
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if self._local is not None:
            return self._local.get(key)
        try:
            client = await self._get_client()
            data = await client.get(key)
            if data is None:
                return None
            return json.loads(data)
        except Exception as e:
            logger.warning(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: JSON-serialisable value
            ttl: Time to live in seconds (Redis only; the local cache uses default_ttl)

        Returns:
            True if successful, False otherwise
        """
        if self._local is not None:
            self._local[key] = value
            return True
        try:
            client = await self._get_client()
            await client.set(key, json.dumps(value), ex=ttl or self.default_ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache set error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if self._local is not None:
            self._local.pop(key, None)
            return True
        try:
            client = await self._get_client()
            await client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys with the given prefix pattern (e.g. "search:posts:*").

        Returns:
            Number of keys deleted
        """
        if self._local is not None:
            prefix = pattern.rstrip("*")
            keys = [k for k in list(self._local.keys()) if k.startswith(prefix)]
            for k in keys:
                self._local.pop(k, None)
            return len(keys)
        try:
            client = await self._get_client()
            keys = []
            async for key in client.scan_iter(match=pattern):
                keys.append(key)

            if keys:
                return await client.delete(*keys)
            return 0
        except Exception as e:
            logger.warning(f"Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache service instance
cache_service = CacheService(redis_url=settings.REDIS_URL, default_ttl=settings.SEARCH_CACHE_TTL)
