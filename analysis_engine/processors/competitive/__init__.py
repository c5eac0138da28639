"""
Competitive Analysis

Live-first competitive comparison with a simulated fallback:

- processor: the job processor and its result type
- integration: live source coordinator (scraping, SERP, PageSpeed)
- sources: live and simulated data strategies
- simulation: simulated section generator
- insights: alerts, confidence and metadata
"""

from .insights import ConfidenceScore, analysis_metadata, calculate_confidence, generate_alerts
from .integration import (
    CompetitiveDataRequest,
    CompetitiveDataResponse,
    IntegrationCoordinator,
    IntegrationMetadata,
    PageSpeedSource,
    ScrapedContentSource,
    SerpRankingSource,
    map_analysis_types,
)
from .processor import CompetitiveAnalysisProcessor, CompetitiveAnalysisResult, placeholder_competitors
from .simulation import CompetitiveSimulator
from .sources import DataSourceResult, LiveDataSource, SimulatedDataSource

__all__ = [
    "ConfidenceScore",
    "analysis_metadata",
    "calculate_confidence",
    "generate_alerts",
    "CompetitiveDataRequest",
    "CompetitiveDataResponse",
    "IntegrationCoordinator",
    "IntegrationMetadata",
    "PageSpeedSource",
    "ScrapedContentSource",
    "SerpRankingSource",
    "map_analysis_types",
    "CompetitiveAnalysisProcessor",
    "CompetitiveAnalysisResult",
    "placeholder_competitors",
    "CompetitiveSimulator",
    "DataSourceResult",
    "LiveDataSource",
    "SimulatedDataSource",
]
