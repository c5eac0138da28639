"""
Analytics Cache

Project-scoped cache of finished analysis payloads that dashboards read
instead of hitting the result tables.

Key format: analytics:{project_id}:{kind}

Backends:
- MemoryAnalyticsCache: TTL dict, single process (local/dev, tests)
- RedisAnalyticsCache: redis.asyncio, shared across workers

Deleting a key that is not present is a no-op, so concurrent
invalidations of the same key are safe.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheKind:
    """Analytics cache kinds, one per processor plus the aggregate."""
    CONTENT_ANALYSIS = "content-analysis"
    SEO_HEALTH = "seo-health"
    COMPETITIVE_ANALYSIS = "competitive-analysis"
    COMPLETE_ANALYTICS = "complete-analytics"


def cache_key(project_id: str, kind: str) -> str:
    return f"analytics:{project_id}:{kind}"


class AnalyticsCache(ABC):
    """Interface shared by the cache backends."""

    @abstractmethod
    async def get(self, project_id: str, kind: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(
        self,
        project_id: str,
        kind: str,
        value: Dict[str, Any],
        ttl_seconds: Optional[int] = None,
    ) -> None:
        ...

    @abstractmethod
    async def invalidate(self, project_id: str, kind: str) -> bool:
        """Remove an entry. Returns True if something was removed."""

    async def close(self) -> None:
        return None


class MemoryAnalyticsCache(AnalyticsCache):
    """In-process cache with per-entry expiry."""

    def __init__(self, default_ttl: int = 3600):
        self.default_ttl = default_ttl
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def get(self, project_id: str, kind: str) -> Optional[Dict[str, Any]]:
        key = cache_key(project_id, kind)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at < time.monotonic():
                del self._entries[key]
                return None
            return value

    async def set(
        self,
        project_id: str,
        kind: str,
        value: Dict[str, Any],
        ttl_seconds: Optional[int] = None,
    ) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        async with self._lock:
            self._entries[cache_key(project_id, kind)] = (time.monotonic() + ttl, value)

    async def invalidate(self, project_id: str, kind: str) -> bool:
        async with self._lock:
            return self._entries.pop(cache_key(project_id, kind), None) is not None

    def __len__(self) -> int:
        return len(self._entries)


class RedisAnalyticsCache(AnalyticsCache):
    """
    Redis-backed cache.

    Values are stored as JSON with SETEX. Read errors degrade to a miss;
    write and delete errors propagate so the caller can report them.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[Redis] = None,
        default_ttl: int = 3600,
    ):
        if client is None and not redis_url:
            raise ValueError("REDIS_URL not provided")
        self._redis = client or Redis.from_url(redis_url, decode_responses=True)
        self.default_ttl = default_ttl

    async def get(self, project_id: str, kind: str) -> Optional[Dict[str, Any]]:
        key = cache_key(project_id, kind)
        try:
            raw = await self._redis.get(key)
        except RedisError as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(
        self,
        project_id: str,
        kind: str,
        value: Dict[str, Any],
        ttl_seconds: Optional[int] = None,
    ) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        await self._redis.setex(cache_key(project_id, kind), ttl, json.dumps(value, default=str))

    async def invalidate(self, project_id: str, kind: str) -> bool:
        deleted = await self._redis.delete(cache_key(project_id, kind))
        return deleted > 0

    async def close(self) -> None:
        await self._redis.close()
        logger.info("Redis analytics cache closed")


def create_analytics_cache(settings) -> AnalyticsCache:
    """Redis when REDIS_URL is configured, memory otherwise."""
    if settings.REDIS_URL:
        logger.info("Using Redis analytics cache")
        return RedisAnalyticsCache(settings.REDIS_URL, default_ttl=settings.CACHE_TTL_SECONDS)
    logger.info("REDIS_URL not set, using in-memory analytics cache")
    return MemoryAnalyticsCache(default_ttl=settings.CACHE_TTL_SECONDS)
