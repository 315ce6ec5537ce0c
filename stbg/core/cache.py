"""
@file cache.py
@brief Redis cache for analysis results
@details
Completed analysis results are cached under a digest of the uploaded
datasets so that re-submitting identical files skips recomputation.
Redis is optional: when it is unreachable every lookup is a miss.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import hashlib
import json
import logging
import os
from typing import Any, Mapping, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

## @brief Default time-to-live for cached analysis results (seconds)
DEFAULT_TTL = int(os.getenv("STBG_CACHE_TTL", "3600"))


class RedisCache:
    """
    @brief Singleton wrapper for Async Redis client
    """
    _instance: Optional['RedisCache'] = None
    client: Optional[redis.Redis] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(RedisCache, cls).__new__(cls)
        return cls._instance

    async def connect(self):
        """
        @brief Initialize Redis connection pool
        @details
        Connects using REDIS_URL environment variable.
        """
        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        try:
            self.client = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.client.ping()
            logger.info(f"Connected to Redis at {redis_url}")
        except Exception as e:
            logger.warning(f"Redis unavailable, results will not be cached: {e}")
            self.client = None

    async def close(self):
        """
        @brief Close Redis connection
        """
        if self.client:
            await self.client.close()
            logger.info("Redis connection closed")

    async def get(self, key: str) -> Optional[Any]:
        """
        @brief Retrieve value from cache
        """
        if not self.client:
            return None
        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"Redis get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = DEFAULT_TTL):
        """
        @brief Set value in cache with TTL
        """
        if not self.client:
            return
        try:
            serialized = json.dumps(value)
            await self.client.setex(key, ttl, serialized)
        except Exception as e:
            logger.warning(f"Redis set error for {key}: {e}")


# Global instance
cache = RedisCache()


def analysis_cache_key(payloads: Mapping[str, bytes], crs: Optional[str] = None) -> str:
    """
    @brief Build the cache key for an analysis request
    @details
    SHA-256 over the dataset keys and raw upload bytes in sorted key order,
    plus the declared input coordinate system.
    """
    digest = hashlib.sha256()
    for name in sorted(payloads):
        digest.update(name.encode("utf-8"))
        digest.update(b"\0")
        digest.update(payloads[name])
        digest.update(b"\0")
    digest.update((crs or "").encode("utf-8"))
    return f"api:analyze:{digest.hexdigest()}"
