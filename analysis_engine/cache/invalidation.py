"""
Cache Invalidation Service

Event-driven invalidation with minimal scope. A finished analysis drops
its own project-scoped entry and the "complete-analytics" aggregate;
nothing else is touched.

Events:
- CONTENT_ANALYSIS_COMPLETED: content-analysis + complete-analytics
- SEO_HEALTH_COMPLETED: seo-health + complete-analytics
- COMPETITIVE_ANALYSIS_COMPLETED: competitive-analysis + complete-analytics
- ANALYSIS_FAILED: nothing (stored data is still valid)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .analytics_cache import AnalyticsCache, CacheKind, MemoryAnalyticsCache

logger = logging.getLogger(__name__)


class CacheEvent(Enum):
    """Events that trigger cache invalidation."""
    CONTENT_ANALYSIS_COMPLETED = "content_analysis_completed"
    SEO_HEALTH_COMPLETED = "seo_health_completed"
    COMPETITIVE_ANALYSIS_COMPLETED = "competitive_analysis_completed"
    ANALYSIS_FAILED = "analysis_failed"


INVALIDATION_SCOPE: Dict[CacheEvent, List[str]] = {
    CacheEvent.CONTENT_ANALYSIS_COMPLETED: [CacheKind.CONTENT_ANALYSIS, CacheKind.COMPLETE_ANALYTICS],
    CacheEvent.SEO_HEALTH_COMPLETED: [CacheKind.SEO_HEALTH, CacheKind.COMPLETE_ANALYTICS],
    CacheEvent.COMPETITIVE_ANALYSIS_COMPLETED: [CacheKind.COMPETITIVE_ANALYSIS, CacheKind.COMPLETE_ANALYTICS],
    CacheEvent.ANALYSIS_FAILED: [],
}


@dataclass
class InvalidationResult:
    """Result of a cache invalidation operation."""
    event: CacheEvent
    success: bool
    keys_invalidated: int
    duration_ms: float
    errors: List[str] = field(default_factory=list)
    kinds: List[str] = field(default_factory=list)


class CacheInvalidator:
    """
    Handles cache invalidation based on events.

    Usage:
        invalidator = CacheInvalidator(cache)
        result = await invalidator.on_event(CacheEvent.SEO_HEALTH_COMPLETED, project_id)
    """

    def __init__(self, cache: Optional[AnalyticsCache] = None):
        self._cache = cache or MemoryAnalyticsCache()

    @property
    def cache(self) -> AnalyticsCache:
        return self._cache

    async def on_event(self, event: CacheEvent, project_id: str) -> InvalidationResult:
        """
        Invalidate the entries scoped to an event.

        Errors are collected per key; the remaining keys are still
        attempted and the result reports success=False.
        """
        start_time = datetime.utcnow()
        errors: List[str] = []
        keys_invalidated = 0
        kinds = INVALIDATION_SCOPE.get(event, [])

        logger.info(f"Cache invalidation event: {event.value}, project={project_id}")

        for kind in kinds:
            try:
                if await self._cache.invalidate(project_id, kind):
                    keys_invalidated += 1
            except Exception as e:
                errors.append(f"{kind}: {e}")
                logger.error(f"Cache invalidation error for {kind}: {e}")

        duration = (datetime.utcnow() - start_time).total_seconds() * 1000

        result = InvalidationResult(
            event=event,
            success=len(errors) == 0,
            keys_invalidated=keys_invalidated,
            duration_ms=duration,
            errors=errors,
            kinds=list(kinds),
        )

        logger.info(
            f"Invalidation complete: {keys_invalidated} keys, duration: {duration:.2f}ms"
        )
        return result
