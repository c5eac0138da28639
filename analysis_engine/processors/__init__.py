"""
Analysis Job Processors

- ContentQualityProcessor: technical SEO, depth, readability and keyword
  relevance of a page, with optional AI and competitor stages
- SEOHealthProcessor: technical, on-page, performance and mobile pillars
- CompetitiveAnalysisProcessor: live-first competitor comparison with a
  simulated fallback
"""

from .competitive import (
    CompetitiveAnalysisProcessor,
    IntegrationCoordinator,
    LiveDataSource,
    PageSpeedSource,
    ScrapedContentSource,
    SerpRankingSource,
    SimulatedDataSource,
)
from .content_quality import ContentQualityProcessor, ContentQualityResult
from .seo_health import SEOHealthProcessor, SEOHealthResult

__all__ = [
    "CompetitiveAnalysisProcessor",
    "IntegrationCoordinator",
    "LiveDataSource",
    "PageSpeedSource",
    "ScrapedContentSource",
    "SerpRankingSource",
    "SimulatedDataSource",
    "ContentQualityProcessor",
    "ContentQualityResult",
    "SEOHealthProcessor",
    "SEOHealthResult",
]
