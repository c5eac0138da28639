"""
Analytics Cache Layer

Usage:
    from analysis_engine.cache import CacheInvalidator, CacheEvent

    invalidator = CacheInvalidator(create_analytics_cache(get_settings()))
    await invalidator.on_event(CacheEvent.SEO_HEALTH_COMPLETED, project_id)
"""

from .analytics_cache import (
    AnalyticsCache,
    CacheKind,
    MemoryAnalyticsCache,
    RedisAnalyticsCache,
    cache_key,
    create_analytics_cache,
)
from .invalidation import (
    CacheEvent,
    CacheInvalidator,
    InvalidationResult,
    INVALIDATION_SCOPE,
)

__all__ = [
    "AnalyticsCache",
    "CacheKind",
    "MemoryAnalyticsCache",
    "RedisAnalyticsCache",
    "cache_key",
    "create_analytics_cache",
    "CacheEvent",
    "CacheInvalidator",
    "InvalidationResult",
    "INVALIDATION_SCOPE",
]
