"""
Factory for creating cache instances from settings.
"""

import logging
from enum import Enum

from shorty.config import Settings
from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Builds the cache configured in settings.

    No instance is cached here: the application lifespan owns the result
    and passes it to the URL service.
    """

    @staticmethod
    def create(settings: Settings) -> CacheStrategy:
        """
        Args:
            settings: Application settings (cache_backend, redis_url, cache_max_entries)

        Returns:
            Cache instance; Redis falls back to memory when unreachable

        Raises:
            ValueError: If cache_backend is unknown
        """
        backend = CacheBackend(settings.cache_backend)

        if backend == CacheBackend.REDIS:
            import redis

            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )

                # Test connection immediately
                redis_client.ping()

                logger.info("Redis cache initialized")
                return RedisCache(redis_client)

            except redis.RedisError as e:
                logger.warning("Redis connection failed (%s); falling back to in-memory cache", e)
                return InMemoryCache(max_entries=settings.cache_max_entries)

        if backend == CacheBackend.MEMORY:
            logger.info("In-memory cache initialized")
            return InMemoryCache(max_entries=settings.cache_max_entries)

        logger.info("Null cache initialized")
        return NullCache()
