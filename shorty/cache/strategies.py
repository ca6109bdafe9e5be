"""
Cache strategies using Strategy Pattern.
Lets redirect lookups switch between Redis, in-process memory and no cache.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for redirect lookup caches.

    Cache failures never surface to callers: a broken cache behaves like a
    miss, and the mapping store remains the source of truth.

    All methods are async because cache operations involve I/O (network for Redis).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """
        Set value in cache with TTL (Time To Live).

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: 1 hour)

        Returns:
            True if successful, False otherwise
        """
        pass


class RedisCache(CacheStrategy):
    """Redis cache, shared between processes and honouring TTLs."""

    def __init__(self, redis_client):
        """
        Args:
            redis_client: Redis client instance (redis.Redis)
        """
        self.redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(key)
            return value.decode("utf-8") if value else None
        except Exception as e:
            logger.warning("Redis get error for %s: %s", key, e)
            return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        try:
            return bool(self.redis.setex(key, ttl, value))
        except Exception as e:
            logger.warning("Redis set error for %s: %s", key, e)
            return False


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using Python dict.

    Entries expire after their TTL; once ``max_entries`` is reached the
    oldest entry is evicted. Lost on restart and private to this process.
    """

    def __init__(self, max_entries: int = 10000):
        if max_entries < 1:
            raise ValueError("max_entries must be a positive integer")
        self.max_entries = max_entries
        self._cache: Dict[str, Tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._cache[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        # Re-insert so dict order tracks insertion age
        self._cache.pop(key, None)
        while len(self._cache) >= self.max_entries:
            del self._cache[next(iter(self._cache))]
        self._cache[key] = (value, time.monotonic() + ttl)
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.
    Every lookup goes straight to the mapping store.
    """

    async def get(self, key: str) -> Optional[str]:
        """Always returns None (cache miss)"""
        return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """Pretends to set but does nothing"""
        return True
