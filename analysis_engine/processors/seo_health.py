"""
SEO Health Processor

Scores four pillars and combines them with fixed weights:

    technical 0.35 | on_page 0.30 | performance 0.20 | mobile 0.15

Performance and mobile default to 85 / 90 when the job does not ask for
them. Page speed and mobile signals come from PageSpeed Insights when a
client is configured, otherwise from the homepage markup.

Stages (progress %):
    10  start
    20  technical infrastructure
    40  on-page optimization (first 5 pages)
    60  performance (if requested)
    75  mobile (if requested)
    85  overall score
    95  recommendations
    98  store results + invalidate caches
    100 done
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from ..cache.invalidation import CacheEvent
from ..integrations.fetcher import ContentFetcher, PageContent, site_url
from ..integrations.pagespeed import PageSpeedClient, PageSpeedReport
from ..jobs.base import JobProcessor, StageOutcome, degraded_stages, run_optional_stage
from ..jobs.models import Job, JobData, JobType, SEOHealthParams
from ..jobs.progress import ProgressReporter
from ..scoring.helpers import weighted_score
from ..scoring.seo import (
    SEOIssue,
    SEORecommendation,
    competitor_comparison,
    dedupe_issues,
    issues_to_recommendations,
    markup_mobile_score,
    markup_speed_score,
    mobile_issues,
    page_optimization,
    page_speed_issues,
    site_architecture_check,
    technical_pillar,
)

logger = logging.getLogger(__name__)


SEO_WEIGHTS = {
    "technical": 0.35,
    "on_page": 0.30,
    "performance": 0.20,
    "mobile": 0.15,
}

DEFAULT_PERFORMANCE_SCORE = 85
DEFAULT_MOBILE_SCORE = 90

FALLBACK_SPEED_SCORE = 70
FALLBACK_MOBILE_SCORE = 80
FALLBACK_ARCHITECTURE_SCORE = 25
FALLBACK_PAGE_SCORE = 60

MAX_SAMPLED_PAGES = 5


@dataclass
class SEOHealthResult:
    overall_score: int
    technical: int
    on_page: int
    performance: int
    mobile: int
    critical_issues: List[SEOIssue]
    warnings: List[SEOIssue]
    recommendations: List[SEORecommendation]
    competitor_comparison: Dict[str, Any]
    pages_analyzed: int
    issues_found: int
    page_scores: List[Dict[str, Any]] = field(default_factory=list)
    degraded_stages: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "technical": self.technical,
            "on_page": self.on_page,
            "performance": self.performance,
            "mobile": self.mobile,
            "critical_issues": [i.to_dict() for i in self.critical_issues],
            "warnings": [i.to_dict() for i in self.warnings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "competitor_comparison": self.competitor_comparison,
            "pages_analyzed": self.pages_analyzed,
            "issues_found": self.issues_found,
            "page_scores": self.page_scores,
            "degraded_stages": dict(self.degraded_stages),
        }


class SEOHealthProcessor(JobProcessor):
    """
    SEO health job processor.

    Usage:
        processor = SEOHealthProcessor(fetcher, pagespeed=PageSpeedClient(key))
        result = await processor.process(job)
    """

    job_type = JobType.SEO_HEALTH_CHECK
    display_name = "SEO health"

    def __init__(
        self,
        fetcher: ContentFetcher,
        pagespeed: Optional[PageSpeedClient] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.fetcher = fetcher
        self.pagespeed = pagespeed

    def estimate_processing_time(self, data: Dict[str, Any]) -> int:
        params: SEOHealthParams = self.parse(data).params
        seconds = len(params.pages) * 120
        if params.include_performance:
            seconds += 180
        if params.include_mobile:
            seconds += 120
        return max(240, seconds)

    async def _run(self, job: Job, data: JobData, progress: ProgressReporter) -> SEOHealthResult:
        params: SEOHealthParams = data.params

        await progress.report(10, "Starting SEO health assessment...")

        await progress.report(20, "Analyzing technical infrastructure...")
        homepage = await run_optional_stage(
            "homepage_fetch",
            lambda: self.retry.optional.run(
                lambda: self.fetcher.fetch_page(params.website_url),
                name="homepage-fetch",
            ),
        )
        speed, mobile_responsiveness, architecture = await asyncio.gather(
            self._speed_stage(params.website_url, homepage),
            self._mobile_stage(params.website_url, homepage),
            self._architecture_stage(params.website_url, params.pages),
        )
        technical_issues = (
            page_speed_issues(speed.value)
            + mobile_issues(mobile_responsiveness.value)
            + architecture.value[1]
        )
        technical = technical_pillar(speed.value, mobile_responsiveness.value, architecture.value[0])

        await progress.report(40, "Evaluating on-page optimization...")
        sampled = params.pages[:MAX_SAMPLED_PAGES]
        page_results = await asyncio.gather(*(self._page_stage(url) for url in sampled))
        page_scores = [r.value for r in page_results]
        on_page = int(round(sum(p["score"] for p in page_scores) / len(page_scores))) if page_scores else 0
        on_page_issues = dedupe_issues(issue for p in page_scores for issue in p["issues"])

        performance = DEFAULT_PERFORMANCE_SCORE
        if params.include_performance:
            await progress.report(60, "Analyzing performance metrics...")
            performance = int(round(speed.value))

        mobile = DEFAULT_MOBILE_SCORE
        if params.include_mobile:
            await progress.report(75, "Checking mobile optimization...")
            mobile = int(round(mobile_responsiveness.value))

        await progress.report(85, "Calculating SEO health score...")
        overall = weighted_score(
            {"technical": technical, "on_page": on_page, "performance": performance, "mobile": mobile},
            SEO_WEIGHTS,
        )

        await progress.report(95, "Generating recommendations...")
        all_issues = technical_issues + on_page_issues
        result = SEOHealthResult(
            overall_score=overall,
            technical=technical,
            on_page=on_page,
            performance=performance,
            mobile=mobile,
            critical_issues=[i for i in all_issues if i.type == "critical"],
            warnings=[i for i in all_issues if i.type == "warning"],
            recommendations=issues_to_recommendations(all_issues),
            competitor_comparison=competitor_comparison(overall),
            pages_analyzed=len(sampled),
            issues_found=len(all_issues),
            page_scores=[
                {"url": p["url"], "score": p["score"], "breakdown": p.get("breakdown", {})}
                for p in page_scores
            ],
            degraded_stages=degraded_stages(
                homepage, speed, mobile_responsiveness, architecture, *page_results
            ),
        )

        await progress.report(98, "Storing SEO analysis results...")
        await self._publish(
            lambda: self.repository.save_seo_result(job.id, data.project_id, result.to_dict()),
            CacheEvent.SEO_HEALTH_COMPLETED,
            data.project_id,
        )

        await progress.report(100, "SEO health assessment completed!")
        return result

    # =========================================================================
    # Stages
    # =========================================================================

    async def _pagespeed_report(self, url: str, strategy: str) -> PageSpeedReport:
        return await self.retry.optional.run(
            lambda: self.pagespeed.run(url, strategy=strategy),
            name=f"pagespeed-{strategy}",
        )

    async def _speed_stage(self, url: str, homepage: StageOutcome) -> StageOutcome:
        async def measure() -> float:
            if self.pagespeed is not None:
                report = await self._pagespeed_report(url, "desktop")
                return report.performance
            if not homepage.ok:
                raise RuntimeError(f"Homepage unavailable: {homepage.error}")
            return markup_speed_score(homepage.value)

        return await run_optional_stage("page_speed", measure, fallback=lambda: FALLBACK_SPEED_SCORE)

    async def _mobile_stage(self, url: str, homepage: StageOutcome) -> StageOutcome:
        async def measure() -> float:
            if self.pagespeed is not None:
                report = await self._pagespeed_report(url, "mobile")
                return report.performance
            if not homepage.ok:
                raise RuntimeError(f"Homepage unavailable: {homepage.error}")
            return markup_mobile_score(homepage.value)

        return await run_optional_stage("mobile_responsiveness", measure, fallback=lambda: FALLBACK_MOBILE_SCORE)

    async def _architecture_stage(self, url: str, pages: List[str]) -> StageOutcome:
        async def check():
            has_robots, has_sitemap = await asyncio.gather(
                self.fetcher.exists(site_url(url, "/robots.txt")),
                self.fetcher.exists(site_url(url, "/sitemap.xml")),
            )
            return site_architecture_check(url, pages, has_robots, has_sitemap)

        return await run_optional_stage(
            "site_architecture",
            check,
            fallback=lambda: (FALLBACK_ARCHITECTURE_SCORE, []),
        )

    async def _page_stage(self, url: str) -> StageOutcome:
        async def analyze() -> Dict[str, Any]:
            page: PageContent = await self.retry.optional.run(
                lambda: self.fetcher.fetch_page(url),
                name=f"page-fetch {url}",
            )
            return page_optimization(page)

        return await run_optional_stage(
            f"on_page:{url}",
            analyze,
            fallback=lambda: {"url": url, "score": FALLBACK_PAGE_SCORE, "issues": []},
        )
