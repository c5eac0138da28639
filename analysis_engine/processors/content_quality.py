"""
Content Quality Processor

Scores a page's content and emits ranked recommendations.

Stages (progress %):
    10  start
    20  extract website content            (required, 3 attempts)
    40  AI content analysis                (static fallback on failure)
        + extended: semantic similarity, topic clusters, E-A-T (concurrent)
    60  technical SEO
    70  readability
    80  semantic relevance
    90  competitor comparison              (optional, 2 attempts per page)
    95  weighting + recommendations
    98  store results + invalidate caches
    100 done

Weighting variants:
    basic:    technical_seo 0.30, content_depth 0.40, readability 0.20,
              semantic_relevance 0.10 (top 10 recommendations)
    extended: technical_seo 0.20, content_depth 0.25, readability 0.15,
              semantic_relevance 0.10, semantic_similarity 0.10, eat 0.15,
              competitive_benchmark 0.05 (top 12 recommendations)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence

from ..cache.invalidation import CacheEvent
from ..integrations.ai import ClaudeClient, EmbeddingClient
from ..integrations.fetcher import ContentFetcher, PageContent
from ..jobs.base import (
    JobProcessor,
    StageOutcome,
    degraded_stages,
    run_optional_stage,
)
from ..jobs.models import ContentAnalysisParams, Job, JobData, JobType
from ..jobs.progress import ProgressReporter
from ..scoring.content import (
    EATScore,
    content_depth_blend,
    heuristic_eat,
    improvement_timeline,
    page_quality_score,
    score_completeness,
    score_expertise,
    score_readability,
    score_semantic_relevance,
    score_technical_seo,
)
from ..scoring.helpers import clamp_score, weighted_score
from ..scoring.recommendations import Recommendation, rank_recommendations
from ..semantic.engine import SemanticAnalysisEngine
from ..utils.errors import ExternalServiceError
from .prompts import (
    CONTENT_ANALYSIS_TEMPLATE,
    CONTENT_ANALYST_SYSTEM,
    EAT_TEMPLATE,
    TOPIC_CLUSTER_TEMPLATE,
    truncate,
)

logger = logging.getLogger(__name__)


BASIC_WEIGHTS = {
    "technical_seo": 0.30,
    "content_depth": 0.40,
    "readability": 0.20,
    "semantic_relevance": 0.10,
}

EXTENDED_WEIGHTS = {
    "technical_seo": 0.20,
    "content_depth": 0.25,
    "readability": 0.15,
    "semantic_relevance": 0.10,
    "semantic_similarity": 0.10,
    "eat": 0.15,
    "competitive_benchmark": 0.05,
}

RECOMMENDATION_LIMITS = {"basic": 10, "extended": 12}

VARIANTS = ("basic", "extended")

FALLBACK_CONTENT_GAPS = ["Technical Implementation", "Advanced Strategies"]
DEFAULT_AI_GAPS = [
    "Content depth improvements needed",
    "Additional topic coverage recommended",
]
FALLBACK_KEYWORD_DENSITY = 2.5
FALLBACK_TOPIC_COVERAGE = 75

MAX_TOPIC_CLUSTERS = 5
MAX_TOPIC_LIST = 10


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass
class ContentAnalysisSummary:
    """AI content analysis, or the static fallback."""
    word_count: int
    heading_structure: float
    keyword_density: float
    content_gaps: List[str]
    topic_coverage: float
    topic_clusters: List[str] = field(default_factory=list)
    source: str = "ai"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word_count": self.word_count,
            "heading_structure": self.heading_structure,
            "keyword_density": self.keyword_density,
            "content_gaps": list(self.content_gaps),
            "topic_coverage": self.topic_coverage,
            "topic_clusters": list(self.topic_clusters),
            "source": self.source,
        }


@dataclass
class ContentQualityResult:
    overall_score: int
    technical_seo: int
    content_depth: int
    readability: int
    semantic_relevance: int
    recommendations: List[Recommendation]
    content_gaps: List[str]
    improvement_timeline: str
    scoring_variant: str
    word_count: int
    content_analysis: ContentAnalysisSummary
    competitor_comparison: Optional[Dict[str, Any]] = None
    extended: Optional[Dict[str, Any]] = None
    degraded_stages: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "overall_score": self.overall_score,
            "technical_seo": self.technical_seo,
            "content_depth": self.content_depth,
            "readability": self.readability,
            "semantic_relevance": self.semantic_relevance,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "content_gaps": list(self.content_gaps),
            "improvement_timeline": self.improvement_timeline,
            "scoring_variant": self.scoring_variant,
            "word_count": self.word_count,
            "content_analysis": self.content_analysis.to_dict(),
            "degraded_stages": dict(self.degraded_stages),
        }
        if self.competitor_comparison is not None:
            data["competitor_comparison"] = self.competitor_comparison
        if self.extended is not None:
            data["extended"] = self.extended
        return data


# ============================================================================
# AI RESPONSE MAPPING
# ============================================================================

def fallback_content_analysis(page: PageContent) -> ContentAnalysisSummary:
    """Static analysis used when the AI call is unavailable."""
    return ContentAnalysisSummary(
        word_count=page.word_count,
        heading_structure=len(page.headings),
        keyword_density=FALLBACK_KEYWORD_DENSITY,
        content_gaps=list(FALLBACK_CONTENT_GAPS),
        topic_coverage=FALLBACK_TOPIC_COVERAGE,
        source="fallback",
    )


def map_content_analysis(response: Dict[str, Any], page: PageContent) -> ContentAnalysisSummary:
    """Map the model's JSON answer; missing values fall back field by field."""
    if not isinstance(response, dict):
        raise ValueError("Content analysis response is not an object")

    gaps = [str(g) for g in response.get("content_gaps") or [] if g]
    clusters = [str(c) for c in response.get("topic_clusters") or [] if c]

    return ContentAnalysisSummary(
        word_count=page.word_count,
        heading_structure=response.get("content_structure_score") or len(page.headings),
        keyword_density=response.get("keyword_density") or FALLBACK_KEYWORD_DENSITY,
        content_gaps=gaps or list(DEFAULT_AI_GAPS),
        topic_coverage=clamp_score(float(response.get("overall_score") or FALLBACK_TOPIC_COVERAGE)),
        topic_clusters=clusters,
        source="ai",
    )


def map_eat_score(response: Dict[str, Any]) -> EATScore:
    def value(name: str) -> int:
        return int(round(clamp_score(float(response.get(name, 0)))))

    return EATScore(
        expertise=value("expertise"),
        authoritativeness=value("authoritativeness"),
        trustworthiness=value("trustworthiness"),
        signals=dict(response.get("signals") or {}),
        source="ai",
    )


# ============================================================================
# COMPETITIVE BENCHMARK
# ============================================================================

FALLBACK_BENCHMARK = {
    "benchmark_score": 70,
    "relative_performance": 75,
    "competitive_gaps": ["Limited competitive data available"],
    "opportunities": [
        {
            "type": "content_expansion",
            "priority": "medium",
            "description": "Expand content depth to outperform competitors",
        }
    ],
    "metrics": {
        "average_word_count": 1000,
        "average_readability": 70,
        "average_technical_seo": 75,
    },
    "source": "fallback",
}


def unscored_eat() -> EATScore:
    """E-A-T when neither the model nor the heuristic produced a score."""
    return EATScore(expertise=0, authoritativeness=0, trustworthiness=0, source="unavailable")


def _ratio(user: float, average: float) -> float:
    if average <= 0:
        return 100.0
    return min(100.0, user / average * 100)


def competitive_benchmark(
    word_count: int,
    readability: float,
    technical_seo: float,
    comparison: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Benchmark the page against competitor averages.

    relative = 0.4 length ratio + 0.3 readability ratio + 0.3 SEO ratio
    benchmark = 0.7 relative + 30 (less 5 per gap)
    """
    avg_words = comparison.get("average_word_count", 0)
    avg_readability = comparison.get("average_readability", 0)
    avg_seo = comparison.get("average_technical_seo", 0)

    relative = (
        _ratio(word_count, avg_words) * 0.4
        + _ratio(readability, avg_readability) * 0.3
        + _ratio(technical_seo, avg_seo) * 0.3
    )

    gaps = []
    opportunities = []
    if word_count < avg_words * 0.8:
        gaps.append("Content length below competitor average")
        opportunities.append({
            "type": "content_expansion",
            "priority": "high",
            "description": f"Expand content toward the competitor average of {int(avg_words)} words",
        })
    if readability < avg_readability - 10:
        gaps.append("Readability below competitor average")
        opportunities.append({
            "type": "readability",
            "priority": "medium",
            "description": "Simplify sentences to match competitor readability",
        })
    if technical_seo < avg_seo - 10:
        gaps.append("Technical SEO below competitor average")
        opportunities.append({
            "type": "technical_seo",
            "priority": "high",
            "description": "Fix title, meta description and heading structure",
        })

    bonus = 30 if not gaps else max(0, 30 - 5 * len(gaps))
    benchmark = min(100, int(round(relative * 0.7 + bonus)))

    return {
        "benchmark_score": benchmark,
        "relative_performance": int(round(relative)),
        "competitive_gaps": gaps,
        "opportunities": opportunities,
        "metrics": {
            "average_word_count": avg_words,
            "average_readability": avg_readability,
            "average_technical_seo": avg_seo,
        },
        "source": "competitors",
    }


# ============================================================================
# RECOMMENDATIONS
# ============================================================================

def technical_recommendations(score: int) -> List[Recommendation]:
    if score >= 90:
        return []
    recs = []
    if score < 80:
        recs.append(Recommendation(
            type="technical",
            priority="high",
            impact="high",
            effort="low",
            title="Optimize Title Tag Length",
            description="Ensure title tags are between 30-60 characters for optimal display.",
            implementation="Review and rewrite title tags to be concise yet descriptive.",
            expected_improvement=15,
        ))
    if score < 70:
        recs.append(Recommendation(
            type="technical",
            priority="high",
            impact="medium",
            effort="low",
            title="Add Meta Descriptions",
            description="Write compelling meta descriptions for all pages.",
            implementation="Create unique 120-160 character meta descriptions.",
            expected_improvement=10,
        ))
    return recs


def content_recommendations(depth: int) -> List[Recommendation]:
    if depth >= 75:
        return []
    return [Recommendation(
        type="content",
        priority="high",
        impact="high",
        effort="medium",
        title="Expand Content Depth",
        description="Add more comprehensive information to improve content value.",
        implementation="Research and add detailed sections, examples, and expert insights.",
        expected_improvement=20,
    )]


def readability_recommendations(score: int) -> List[Recommendation]:
    if score >= 80:
        return []
    return [Recommendation(
        type="readability",
        priority="medium",
        impact="medium",
        effort="low",
        title="Improve Content Structure",
        description="Break up long paragraphs and add more subheadings.",
        implementation="Use shorter sentences, bullet points, and logical heading hierarchy.",
        expected_improvement=15,
    )]


def semantic_recommendations(score: int) -> List[Recommendation]:
    if score >= 85:
        return []
    return [Recommendation(
        type="semantic",
        priority="medium",
        impact="high",
        effort="medium",
        title="Optimize Keyword Integration",
        description="Better integrate target keywords naturally throughout content.",
        implementation="Review keyword density and add semantic variations.",
        expected_improvement=18,
    )]


def extended_recommendations(eat: int, expertise: int, benchmark: int) -> List[Recommendation]:
    recs = []
    if eat < 70:
        recs.append(Recommendation(
            type="authority",
            priority="high",
            impact="high",
            effort="medium",
            title="Strengthen Authority Signals",
            description="Add author credentials, cited sources and verifiable facts.",
            implementation="Add an author bio, link primary sources and reference current data.",
            expected_improvement=12,
        ))
    if expertise < 60:
        recs.append(Recommendation(
            type="expertise",
            priority="medium",
            impact="medium",
            effort="medium",
            title="Demonstrate Subject Expertise",
            description="Show first-hand knowledge with methodology, data and technical detail.",
            implementation="Add research findings, worked examples and precise terminology.",
            expected_improvement=10,
        ))
    if benchmark < 70:
        recs.append(Recommendation(
            type="competitive",
            priority="medium",
            impact="high",
            effort="high",
            title="Close Competitive Content Gaps",
            description="Competitor pages cover more ground than this page.",
            implementation="Cover the topics competitors rank for and match their content depth.",
            expected_improvement=8,
        ))
    return recs


# ============================================================================
# PROCESSOR
# ============================================================================

class ContentQualityProcessor(JobProcessor):
    """
    Content quality job processor.

    Usage:
        processor = ContentQualityProcessor(fetcher, engine, ai_client=claude)
        result = await processor.process(job)
    """

    job_type = JobType.CONTENT_ANALYSIS
    display_name = "content analysis"

    def __init__(
        self,
        fetcher: ContentFetcher,
        engine: SemanticAnalysisEngine,
        ai_client: Optional[ClaudeClient] = None,
        embedding_client: Optional[EmbeddingClient] = None,
        variant: str = "basic",
        **kwargs,
    ):
        super().__init__(**kwargs)
        if variant not in VARIANTS:
            raise ValueError(f"Unknown content scoring variant: {variant}")
        self.fetcher = fetcher
        self.engine = engine
        self.ai_client = ai_client
        self.embedding_client = embedding_client
        self.variant = variant

    @property
    def weights(self) -> Dict[str, float]:
        return EXTENDED_WEIGHTS if self.variant == "extended" else BASIC_WEIGHTS

    def estimate_processing_time(self, data: Dict[str, Any]) -> int:
        params: ContentAnalysisParams = self.parse(data).params
        seconds = 180
        if params.analysis_depth == "comprehensive":
            seconds += 120
        seconds += len(params.competitor_urls) * 60
        return seconds

    async def _run(self, job: Job, data: JobData, progress: ProgressReporter) -> ContentQualityResult:
        params: ContentAnalysisParams = data.params
        keywords = params.target_keywords

        await progress.report(10, "Starting content analysis...")

        await progress.report(20, "Extracting website content...")
        page = await self.retry.required.run(
            lambda: self.fetcher.fetch_page(params.website_url),
            name="content-extraction",
        )
        logger.info(f"Extracted {page.word_count} words from {params.website_url}")

        await progress.report(40, "Analyzing content quality...")
        analysis_outcome = await run_optional_stage(
            "content_analysis",
            lambda: self._analyze_content_quality(page, keywords),
            fallback=lambda: fallback_content_analysis(page),
        )
        analysis: ContentAnalysisSummary = analysis_outcome.value

        extended_outcomes: List[StageOutcome] = []
        if self.variant == "extended":
            extended_outcomes = list(await asyncio.gather(
                run_optional_stage(
                    "semantic_similarity",
                    lambda: self._semantic_similarity(page, keywords),
                ),
                run_optional_stage(
                    "topic_clusters",
                    lambda: self._topic_clusters(page, keywords),
                    fallback=lambda: self.engine.extract_topics(page.text)[:MAX_TOPIC_CLUSTERS],
                ),
                run_optional_stage(
                    "eat",
                    lambda: self._eat_score(page),
                    fallback=lambda: heuristic_eat(page),
                ),
            ))

        await progress.report(60, "Evaluating technical SEO...")
        technical = score_technical_seo(page)

        await progress.report(70, "Analyzing readability and structure...")
        readability = score_readability(page)

        await progress.report(80, "Evaluating semantic relevance...")
        relevance = score_semantic_relevance(page, keywords)

        comparison_outcome: Optional[StageOutcome] = None
        if params.competitor_urls:
            await progress.report(90, "Analyzing competitors...")
            comparison_outcome = await run_optional_stage(
                "competitor_comparison",
                lambda: self._compare_competitors(page, params.competitor_urls),
            )
        comparison = comparison_outcome.value if comparison_outcome and comparison_outcome.ok else None

        await progress.report(95, "Generating recommendations...")
        result = self._build_result(
            page=page,
            analysis=analysis,
            technical=technical,
            readability=readability,
            relevance=relevance,
            comparison=comparison,
            extended_outcomes=extended_outcomes,
        )
        result.degraded_stages = degraded_stages(analysis_outcome, comparison_outcome, *extended_outcomes)

        await progress.report(98, "Storing analysis results...")
        await self._publish(
            lambda: self.repository.save_content_result(
                job.id, data.project_id, result.to_dict(), params.analysis_depth
            ),
            CacheEvent.CONTENT_ANALYSIS_COMPLETED,
            data.project_id,
        )

        await progress.report(100, "Content analysis completed!")
        return result

    # =========================================================================
    # Scoring
    # =========================================================================

    def _build_result(
        self,
        page: PageContent,
        analysis: ContentAnalysisSummary,
        technical: int,
        readability: int,
        relevance: int,
        comparison: Optional[Dict[str, Any]],
        extended_outcomes: Sequence[StageOutcome],
    ) -> ContentQualityResult:
        scores = {
            "technical_seo": technical,
            "readability": readability,
            "semantic_relevance": relevance,
        }
        recommendations: List[Recommendation] = []
        extended = None

        if self.variant == "extended":
            similarity_outcome, clusters_outcome, eat_outcome = extended_outcomes
            similarity = similarity_outcome.value if similarity_outcome.ok else relevance
            clusters = clusters_outcome.value or []
            eat: EATScore = eat_outcome.value if eat_outcome.usable else unscored_eat()
            completeness = score_completeness(page)
            expertise = score_expertise(page)
            topic_depth = min(100, len(clusters) * 20)
            benchmark = (
                competitive_benchmark(page.word_count, readability, technical, comparison)
                if comparison else dict(FALLBACK_BENCHMARK)
            )

            scores["content_depth"] = content_depth_blend(
                analysis.topic_coverage, topic_depth, completeness, expertise
            )
            scores["semantic_similarity"] = int(round(clamp_score(similarity)))
            scores["eat"] = eat.overall
            scores["competitive_benchmark"] = benchmark["benchmark_score"]

            recommendations.extend(extended_recommendations(
                eat.overall, expertise, benchmark["benchmark_score"]
            ))
            extended = {
                "semantic_similarity": scores["semantic_similarity"],
                "topic_clusters": clusters,
                "topic_depth": topic_depth,
                "completeness": completeness,
                "expertise": expertise,
                "eat": eat.to_dict(),
                "competitive_benchmark": benchmark,
            }
        else:
            scores["content_depth"] = int(round(analysis.topic_coverage or FALLBACK_TOPIC_COVERAGE))

        overall = weighted_score(scores, self.weights)

        recommendations = (
            technical_recommendations(technical)
            + content_recommendations(scores["content_depth"])
            + readability_recommendations(readability)
            + semantic_recommendations(relevance)
            + recommendations
        )

        return ContentQualityResult(
            overall_score=overall,
            technical_seo=technical,
            content_depth=scores["content_depth"],
            readability=readability,
            semantic_relevance=relevance,
            recommendations=rank_recommendations(recommendations, RECOMMENDATION_LIMITS[self.variant]),
            content_gaps=list(comparison["gaps"]) if comparison else [],
            improvement_timeline=improvement_timeline(overall),
            scoring_variant=self.variant,
            word_count=page.word_count,
            content_analysis=analysis,
            competitor_comparison=comparison,
            extended=extended,
        )

    # =========================================================================
    # External collaborators
    # =========================================================================

    def _require_ai(self) -> ClaudeClient:
        if self.ai_client is None:
            raise ExternalServiceError(
                ClaudeClient.SERVICE_NAME, "ANTHROPIC_API_KEY not configured", retryable=False
            )
        return self.ai_client

    async def _analyze_content_quality(self, page: PageContent, keywords: List[str]) -> ContentAnalysisSummary:
        client = self._require_ai()
        prompt = CONTENT_ANALYSIS_TEMPLATE.format(
            title=page.title or "(missing)",
            meta_description=page.meta_description or "(missing)",
            keywords=", ".join(keywords),
            headings="\n".join(f"  H{h.level}: {h.text}" for h in page.headings) or "  (none)",
            content=truncate(page.text),
        )
        response = await self.retry.required.run(
            lambda: client.analyze_json(prompt, system=CONTENT_ANALYST_SYSTEM),
            name="ai-content-analysis",
        )
        return map_content_analysis(response, page)

    async def _semantic_similarity(self, page: PageContent, keywords: List[str]) -> float:
        if self.embedding_client is None:
            raise ExternalServiceError(
                EmbeddingClient.SERVICE_NAME, "OPENAI_API_KEY not configured", retryable=False
            )
        similarity = await self.retry.required.run(
            lambda: self.embedding_client.similarity(page.body, " ".join(keywords)),
            name="embedding-similarity",
        )
        return similarity * 100

    async def _topic_clusters(self, page: PageContent, keywords: List[str]) -> List[str]:
        client = self._require_ai()
        prompt = TOPIC_CLUSTER_TEMPLATE.format(keywords=", ".join(keywords), content=truncate(page.text))
        response = await self.retry.required.run(
            lambda: client.analyze_json(prompt, system=CONTENT_ANALYST_SYSTEM),
            name="ai-topic-clusters",
        )
        clusters = response.get("clusters") if isinstance(response, dict) else None
        if not clusters:
            raise ValueError("No topic clusters in response")
        return [c["name"] if isinstance(c, dict) else str(c) for c in clusters]

    async def _eat_score(self, page: PageContent) -> EATScore:
        client = self._require_ai()
        prompt = EAT_TEMPLATE.format(title=page.title or "(missing)", content=truncate(page.text))
        response = await self.retry.required.run(
            lambda: client.analyze_json(prompt, system=CONTENT_ANALYST_SYSTEM),
            name="ai-eat",
        )
        if not isinstance(response, dict):
            raise ValueError("E-A-T response is not an object")
        return map_eat_score(response)

    async def _fetch_competitor(self, url: str) -> PageContent:
        return await self.retry.optional.run(
            lambda: self.fetcher.fetch_page(url),
            name=f"competitor-fetch {url}",
        )

    async def _compare_competitors(self, page: PageContent, urls: List[str]) -> Dict[str, Any]:
        """
        Score competitor pages against the target page.

        Raises:
            ExternalServiceError: No competitor page could be fetched
        """
        fetched = await asyncio.gather(*(self._fetch_competitor(u) for u in urls), return_exceptions=True)
        pages = [p for p in fetched if isinstance(p, PageContent)]
        failed = [u for u, p in zip(urls, fetched) if not isinstance(p, PageContent)]
        if not pages:
            raise ExternalServiceError("content fetch", "No competitor pages could be fetched")

        scored = [(p, page_quality_score(p)) for p in pages]
        top_page, _ = max(scored, key=lambda item: item[1])

        target_topics = self.engine.extract_topics(page.text)
        competitor_topics: List[str] = []
        for p in pages:
            for topic in self.engine.extract_topics(p.text):
                if topic not in competitor_topics:
                    competitor_topics.append(topic)

        target_set = set(target_topics)
        competitor_set = set(competitor_topics)

        return {
            "average_score": int(round(sum(s for _, s in scored) / len(scored))),
            "top_performer": top_page.url,
            "gaps": [t for t in competitor_topics if t not in target_set][:MAX_TOPIC_LIST],
            "advantages": [t for t in target_topics if t not in competitor_set][:MAX_TOPIC_LIST],
            "average_word_count": int(round(sum(p.word_count for p in pages) / len(pages))),
            "average_readability": int(round(sum(score_readability(p) for p in pages) / len(pages))),
            "average_technical_seo": int(round(sum(score_technical_seo(p) for p in pages) / len(pages))),
            "pages_compared": len(pages),
            "failed_urls": failed,
        }
