"""
External Data Integration Coordinator

Collects live competitive data from three independent sources and
merges whatever they return into one response:

- content: homepage scrape of target and primary competitor, compared
  with the semantic engine
- seo: SerpApi rankings for the job's keywords
- performance: PageSpeed Insights Lighthouse runs

Sources run concurrently. A failed source adds a limitation; the
response succeeds when at least one source returned data.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from ...integrations.fetcher import ContentFetcher, PageContent
from ...integrations.pagespeed import PageSpeedClient, PageSpeedReport
from ...integrations.serp import SerpApiClient, find_domain_position
from ...scoring.content import score_completeness, score_readability, score_technical_seo
from ...scoring.helpers import ScoreComponent, clamp_score, compare_metric
from ...semantic.engine import SemanticAnalysisEngine
from ...utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


# Analysis type (job payload) -> integration kind
ANALYSIS_KIND = {
    "content-similarity": "content",
    "seo-comparison": "seo",
    "performance-benchmark": "performance",
    "comprehensive": "comprehensive",
}

MAX_SOURCES = 3
MAX_SERP_KEYWORDS = 10
MAX_PERFORMANCE_OPPORTUNITIES = 5


def map_analysis_types(analysis_types: List[str]) -> List[str]:
    """Map job analysis types to integration kinds; unknown types map to content."""
    kinds = []
    for analysis_type in analysis_types:
        kind = ANALYSIS_KIND.get(analysis_type, "content")
        if kind not in kinds:
            kinds.append(kind)
    return kinds


@dataclass
class CompetitiveDataRequest:
    target_domain: str
    competitor_domains: List[str]
    analysis_types: List[str]
    depth: str = "standard"
    include_historical: bool = False
    timeframe: str = "30d"
    keywords: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)

    def wants(self, kind: str) -> bool:
        return kind in self.analysis_types or "comprehensive" in self.analysis_types

    @property
    def primary_competitor(self) -> str:
        if not self.competitor_domains:
            raise ValueError("No competitor domains to compare against")
        return self.competitor_domains[0]


@dataclass
class IntegrationMetadata:
    processing_time: float
    data_sources_used: List[str] = field(default_factory=list)
    confidence: float = 0.0
    limitations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time": self.processing_time,
            "data_sources_used": list(self.data_sources_used),
            "confidence": self.confidence,
            "limitations": list(self.limitations),
        }


@dataclass
class CompetitiveDataResponse:
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    metadata: IntegrationMetadata = field(default_factory=lambda: IntegrationMetadata(0.0))


def integration_confidence(sources_used: int, limitations: int) -> float:
    """Confidence in live data: source coverage minus a limitation penalty."""
    score = (sources_used / MAX_SOURCES) * 70 - min(10 * limitations, 30)
    return round(clamp_score(score), 1)


def https_url(domain: str) -> str:
    return domain if "://" in domain else f"https://{domain}"


def bounded_comparison(name: str, user: float, competitor: float) -> Dict[str, Any]:
    """Compare two 0-100 scores through a ScoreComponent."""
    return ScoreComponent(name, user, competitor).comparison()


# ============================================================================
# SOURCES
# ============================================================================

class CompetitiveSource(ABC):
    """A live data source producing one analysis section."""

    kind: str
    section: str
    source_name: str

    @abstractmethod
    async def analyze(self, request: CompetitiveDataRequest) -> Dict[str, Any]:
        ...

    async def health_check(self) -> str:
        """'healthy', 'degraded' or 'unhealthy'."""
        return "healthy"


class ScrapedContentSource(CompetitiveSource):
    """Content comparison from scraped homepages."""

    kind = "content"
    section = "content_analysis"
    source_name = "Web Scraping"

    def __init__(
        self,
        fetcher: ContentFetcher,
        engine: SemanticAnalysisEngine,
        retry: Optional[RetryPolicy] = None,
    ):
        self.fetcher = fetcher
        self.engine = engine
        self.retry = retry or RetryPolicy(max_attempts=2)

    async def _fetch(self, domain: str) -> PageContent:
        url = https_url(domain)
        return await self.retry.run(lambda: self.fetcher.fetch_page(url), name=f"scrape {url}")

    async def analyze(self, request: CompetitiveDataRequest) -> Dict[str, Any]:
        target, competitor = await asyncio.gather(
            self._fetch(request.target_domain),
            self._fetch(request.primary_competitor),
        )
        result = self.engine.analyze_content(target.body, [competitor.body])
        if not result.success:
            raise RuntimeError(f"Semantic comparison failed: {result.error}")
        comparison = result.data["comparisons"][0]

        user_factors = {
            "depth": score_completeness(target),
            "readability": score_readability(target),
            "seo_optimization": score_technical_seo(target),
        }
        competitor_factors = {
            "depth": score_completeness(competitor),
            "readability": score_readability(competitor),
            "seo_optimization": score_technical_seo(competitor),
        }
        user_score = round(sum(user_factors.values()) / len(user_factors), 1)
        competitor_score = round(sum(competitor_factors.values()) / len(competitor_factors), 1)

        gaps = comparison["content_gaps"]
        return {
            "content_similarity": comparison["similarity"],
            "content_quality": {
                "user_score": user_score,
                "competitor_score": competitor_score,
                "gap": round(user_score - competitor_score, 1),
                "quality_factors": {
                    name: bounded_comparison(name, user_factors[name], competitor_factors[name])
                    for name in user_factors
                },
            },
            "topic_analysis": {
                "shared_topics": comparison["shared_topics"],
                "unique_user_topics": comparison["unique_topics"],
                "unique_competitor_topics": gaps,
                "topic_gaps": [
                    {
                        "topic": topic,
                        "opportunity_score": round(100 - index * (50 / max(len(gaps), 1)), 1),
                        "search_volume": None,
                        "recommendation": f"Cover {topic} the way {request.primary_competitor} does",
                    }
                    for index, topic in enumerate(gaps[:5])
                ],
                "emerging_topics": [],
            },
            "content_volume": {
                "average_word_count": compare_metric(target.word_count, competitor.word_count),
            },
            "content_strategy": {
                "recommendations": [
                    {
                        "type": "content-gap",
                        "priority": "high",
                        "title": f"Cover {topic}",
                        "description": f"{request.primary_competitor} covers {topic} and you do not",
                    }
                    for topic in gaps[:3]
                ],
            },
        }

    async def health_check(self) -> str:
        health = self.engine.health_check()
        return health.get("status", "unhealthy")


class SerpRankingSource(CompetitiveSource):
    """Ranking comparison from SerpApi organic results."""

    kind = "seo"
    section = "seo_analysis"
    source_name = "SerpApi"

    def __init__(self, client: SerpApiClient, retry: Optional[RetryPolicy] = None):
        self.client = client
        self.retry = retry or RetryPolicy(max_attempts=2)

    async def _rankings(self, keyword: str, request: CompetitiveDataRequest) -> Dict[str, Any]:
        location = request.locations[0] if request.locations else None
        results = await self.retry.run(
            lambda: self.client.search(keyword, location=location),
            name=f"serp '{keyword}'",
        )
        return {
            "keyword": keyword,
            "user": find_domain_position(results, request.target_domain),
            "competitor": find_domain_position(results, request.primary_competitor),
        }

    async def analyze(self, request: CompetitiveDataRequest) -> Dict[str, Any]:
        keywords = request.keywords[:MAX_SERP_KEYWORDS]
        if not keywords:
            raise ValueError("No keywords supplied for ranking comparison")

        rows = await asyncio.gather(*(self._rankings(k, request) for k in keywords))
        return serp_comparison(rows)


def visibility(positions: List[Optional[int]]) -> float:
    """Mean of max(0, 100 - (position - 1) * 10) across keywords; unranked scores 0."""
    if not positions:
        return 0.0
    scores = [max(0, 100 - (p - 1) * 10) if p else 0 for p in positions]
    return round(sum(scores) / len(scores), 1)


def gap_priority(rank: int) -> str:
    if rank <= 3:
        return "high"
    if rank <= 10:
        return "medium"
    return "low"


def _mean_position(positions: List[Optional[int]]) -> Optional[float]:
    ranked = [p for p in positions if p]
    return round(sum(ranked) / len(ranked), 1) if ranked else None


def serp_comparison(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the seo_analysis section from per-keyword positions."""
    user_positions = [r["user"] for r in rows]
    competitor_positions = [r["competitor"] for r in rows]
    user_score = visibility(user_positions)
    competitor_score = visibility(competitor_positions)

    shared = [
        {"keyword": r["keyword"], "user_ranking": r["user"], "competitor_ranking": r["competitor"]}
        for r in rows if r["user"] and r["competitor"]
    ]
    user_unique = [{"keyword": r["keyword"], "ranking": r["user"]} for r in rows if r["user"] and not r["competitor"]]
    competitor_unique = [
        {"keyword": r["keyword"], "ranking": r["competitor"]} for r in rows if r["competitor"] and not r["user"]
    ]
    gaps = [
        {
            "keyword": item["keyword"],
            "competitor_ranking": item["ranking"],
            "search_volume": None,
            "difficulty": None,
            "opportunity_score": max(0, 100 - (item["ranking"] - 1) * 5),
            "priority": gap_priority(item["ranking"]),
        }
        for item in competitor_unique
    ]
    gaps.sort(key=lambda g: g["opportunity_score"], reverse=True)

    either = [r for r in rows if r["user"] or r["competitor"]]
    return {
        "overall_comparison": {
            "user_score": user_score,
            "competitor_score": competitor_score,
            "gap": round(user_score - competitor_score, 1),
            "ranking_comparison": {
                "average_position": {
                    "user": _mean_position(user_positions),
                    "competitor": _mean_position(competitor_positions),
                },
                "top_rankings": {
                    "user": sum(1 for p in user_positions if p and p <= 10),
                    "competitor": sum(1 for p in competitor_positions if p and p <= 10),
                },
                "improvement_opportunities": [
                    {"keyword": r["keyword"], "current_position": r["user"], "target_position": 3}
                    for r in rows if r["user"] and r["user"] > 3
                ],
            },
            "visibility_metrics": {
                "keyword_visibility": bounded_comparison("keyword_visibility", user_score, competitor_score),
            },
        },
        "keyword_analysis": {
            "shared_keywords": shared,
            "user_unique_keywords": user_unique,
            "competitor_unique_keywords": competitor_unique,
            "keyword_gaps": gaps,
            "ranking_overlap": round(len(shared) / len(either) * 100, 1) if either else 0.0,
        },
    }


class PageSpeedSource(CompetitiveSource):
    """Performance comparison from PageSpeed Insights."""

    kind = "performance"
    section = "performance_analysis"
    source_name = "PageSpeed Insights"

    SPEED_METRICS = (
        "first_contentful_paint",
        "largest_contentful_paint",
        "total_blocking_time",
        "cumulative_layout_shift",
        "speed_index",
    )

    def __init__(self, client: PageSpeedClient, retry: Optional[RetryPolicy] = None):
        self.client = client
        self.retry = retry or RetryPolicy(max_attempts=2)

    async def _report(self, domain: str, strategy: str) -> PageSpeedReport:
        url = https_url(domain)
        return await self.retry.run(
            lambda: self.client.run(url, strategy=strategy),
            name=f"pagespeed {strategy} {url}",
        )

    async def analyze(self, request: CompetitiveDataRequest) -> Dict[str, Any]:
        user, competitor, user_mobile, competitor_mobile = await asyncio.gather(
            self._report(request.target_domain, "desktop"),
            self._report(request.primary_competitor, "desktop"),
            self._report(request.target_domain, "mobile"),
            self._report(request.primary_competitor, "mobile"),
        )
        return performance_comparison(user, competitor, user_mobile, competitor_mobile)


def improvement_potential(savings_ms: float, lcp_ms: Optional[float]) -> float:
    """Share of LCP an opportunity could save, capped at 100."""
    if not lcp_ms:
        return 0.0
    return round(min(100.0, savings_ms / lcp_ms * 100), 1)


def performance_comparison(
    user: PageSpeedReport,
    competitor: PageSpeedReport,
    user_mobile: PageSpeedReport,
    competitor_mobile: PageSpeedReport,
) -> Dict[str, Any]:
    """Build the performance_analysis section from four Lighthouse reports."""
    speed = {
        name: compare_metric(user.metrics[name], competitor.metrics[name], lower_is_better=True)
        for name in PageSpeedSource.SPEED_METRICS
        if name in user.metrics and name in competitor.metrics
    }
    lcp = user.metrics.get("largest_contentful_paint")
    opportunities = [
        {
            "metric": item["title"],
            "current_value": item["savings_ms"],
            "competitor_value": None,
            "improvement_potential": improvement_potential(item["savings_ms"], lcp),
            "implementation": {
                "difficulty": "medium",
                "effort": item["description"],
                "expected_impact": improvement_potential(item["savings_ms"], lcp),
            },
        }
        for item in user.opportunities[:MAX_PERFORMANCE_OPPORTUNITIES]
    ]
    opportunities.sort(key=lambda o: o["improvement_potential"], reverse=True)

    return {
        "speed_comparison": speed,
        "user_experience": {
            "overall_score": bounded_comparison("overall_score", user.performance, competitor.performance),
            "accessibility": bounded_comparison("accessibility", user.accessibility, competitor.accessibility),
            "best_practices": bounded_comparison("best_practices", user.best_practices, competitor.best_practices),
            "seo": bounded_comparison("seo", user.seo, competitor.seo),
        },
        "mobile_performance": {
            "mobile_speed": bounded_comparison(
                "mobile_speed", user_mobile.performance, competitor_mobile.performance
            ),
            "mobile_accessibility": bounded_comparison(
                "mobile_accessibility", user_mobile.accessibility, competitor_mobile.accessibility
            ),
        },
        "performance_opportunities": opportunities,
    }


# ============================================================================
# COORDINATOR
# ============================================================================

class IntegrationCoordinator:
    """
    Runs every live source a request asks for and merges the results.

    Usage:
        coordinator = IntegrationCoordinator([ScrapedContentSource(fetcher, engine)])
        response = await coordinator.perform_competitive_analysis(request)
    """

    def __init__(self, sources: List[CompetitiveSource]):
        self.sources = list(sources)

    async def perform_competitive_analysis(self, request: CompetitiveDataRequest) -> CompetitiveDataResponse:
        start = time.perf_counter()
        data: Dict[str, Any] = {}
        sources_used: List[str] = []
        limitations: List[str] = []

        try:
            selected = [s for s in self.sources if request.wants(s.kind)]
            results = await asyncio.gather(
                *(s.analyze(request) for s in selected), return_exceptions=True
            )
            for source, result in zip(selected, results):
                if isinstance(result, Exception):
                    error = str(result) or result.__class__.__name__
                    logger.warning(f"{source.kind} source ({source.source_name}) failed: {error}")
                    limitations.append(f"{source.kind.capitalize()} analysis failed: {error}")
                elif result:
                    data[source.section] = result
                    sources_used.append(source.source_name)

            confidence = integration_confidence(len(sources_used), len(limitations))
            logger.info(
                f"Live competitive analysis for {request.target_domain}: "
                f"{len(sources_used)} sources, {len(limitations)} limitations"
            )
            return CompetitiveDataResponse(
                success=bool(data),
                data=data,
                error=None if data else "No live data source returned data",
                metadata=IntegrationMetadata(
                    processing_time=self._elapsed_ms(start),
                    data_sources_used=sources_used,
                    confidence=confidence,
                    limitations=limitations,
                ),
            )
        except Exception as e:
            logger.error(f"Competitive data coordination failed: {e}")
            return CompetitiveDataResponse(
                success=False,
                error=str(e) or "Analysis coordination failed",
                metadata=IntegrationMetadata(
                    processing_time=self._elapsed_ms(start),
                    data_sources_used=sources_used,
                    confidence=0.0,
                    limitations=["Coordination failure"] + limitations,
                ),
            )

    async def health_check(self) -> Dict[str, Any]:
        """Per-source status and an overall verdict."""
        statuses: Dict[str, str] = {}
        for source in self.sources:
            try:
                statuses[source.source_name] = await source.health_check()
            except Exception as e:
                logger.warning(f"Health check for {source.source_name} failed: {e}")
                statuses[source.source_name] = "unhealthy"

        return {"status": overall_health(list(statuses.values())), "sources": statuses}

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)


def overall_health(statuses: List[str]) -> str:
    healthy = statuses.count("healthy")
    degraded = statuses.count("degraded")
    if healthy >= 2:
        return "healthy"
    if healthy + degraded >= 2:
        return "degraded"
    return "unhealthy"
