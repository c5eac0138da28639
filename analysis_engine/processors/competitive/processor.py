"""
Competitive Analysis Processor

Compares a target domain against a set of competitors. Live data from
the integration coordinator is preferred; when it fails the processor
falls back to simulated data per analysis type so the job still
completes. The result metadata names the strategy that ran.

Stages (progress %):
    5   start
    10  load competitors (placeholders on lookup failure)
    20  live analysis
    80  live data ready                 | 30..80 simulated, per type
    85  alerts
    90  confidence + metadata
    95  store results + invalidate caches
    100 done
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional

from ...cache.invalidation import CacheEvent
from ...database.repository import Competitor
from ...jobs.base import JobProcessor
from ...jobs.models import CompetitiveAnalysisParams, Job, JobData, JobType
from ...jobs.progress import ProgressReporter
from .insights import ConfidenceScore, analysis_metadata, calculate_confidence, generate_alerts
from .integration import CompetitiveDataRequest, map_analysis_types
from .sources import DataSourceResult, LiveDataSource, SimulatedDataSource

logger = logging.getLogger(__name__)


DEPTH_MULTIPLIERS = {
    "basic": 1.0,
    "standard": 1.5,
    "comprehensive": 2.5,
}

BASE_SECONDS = 300
SECONDS_PER_COMPETITOR = 120
SECONDS_PER_ANALYSIS_TYPE = 60

SIMULATION_START = 35
SIMULATION_SPAN = 45


def placeholder_competitors(competitor_ids: List[str]) -> List[Competitor]:
    return [
        Competitor(
            id=competitor_id,
            name=f"Competitor {index + 1}",
            domain=f"competitor{index + 1}.com",
            metadata={"industry": "unknown", "size": "medium", "location": "unknown"},
            placeholder=True,
        )
        for index, competitor_id in enumerate(competitor_ids)
    ]


def result_analysis_type(analysis_types: List[str]) -> str:
    return "comprehensive" if "comprehensive" in analysis_types else analysis_types[0]


@dataclass
class CompetitiveAnalysisResult:
    id: str
    project_id: str
    competitor_id: str
    analysis_type: str
    data: Dict[str, Any]
    confidence: ConfidenceScore
    metadata: Dict[str, Any]
    alerts: List[Dict[str, Any]] = field(default_factory=list)
    status: str = "completed"
    progress: int = 100
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def strategy(self) -> str:
        return self.metadata.get("data_strategy", "simulated")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "competitor_id": self.competitor_id,
            "analysis_type": self.analysis_type,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status,
            "progress": self.progress,
            "data": self.data,
            "alerts": self.alerts,
            "confidence": self.confidence.to_dict(),
            "metadata": self.metadata,
        }


class CompetitiveAnalysisProcessor(JobProcessor):
    """
    Competitive analysis job processor.

    Usage:
        processor = CompetitiveAnalysisProcessor(
            live_source=LiveDataSource(coordinator),
            repository=ResultRepository(),
        )
        result = await processor.process(job)
    """

    job_type = JobType.COMPETITIVE_ANALYSIS
    display_name = "competitive"

    def __init__(
        self,
        live_source: Optional[LiveDataSource] = None,
        simulated_source: Optional[SimulatedDataSource] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.live_source = live_source
        self.simulated_source = simulated_source or SimulatedDataSource()

    def estimate_processing_time(self, data: Dict[str, Any]) -> int:
        params: CompetitiveAnalysisParams = self.parse(data).params
        seconds = (
            BASE_SECONDS
            + len(params.competitor_ids) * SECONDS_PER_COMPETITOR
            + len(params.analysis_types) * SECONDS_PER_ANALYSIS_TYPE
        )
        return int(round(seconds * DEPTH_MULTIPLIERS[params.options.depth]))

    async def _run(self, job: Job, data: JobData, progress: ProgressReporter) -> CompetitiveAnalysisResult:
        params: CompetitiveAnalysisParams = data.params
        options = params.options
        start = time.perf_counter()

        await progress.report(5, "Starting competitive analysis...")

        await progress.report(10, "Loading competitor data...")
        competitors = await self._load_competitors(params.competitor_ids)

        await progress.report(20, "Performing competitive analysis with external data sources...")
        request = CompetitiveDataRequest(
            target_domain=params.target_domain,
            competitor_domains=[c.domain for c in competitors],
            analysis_types=map_analysis_types(params.analysis_types),
            depth=options.depth,
            include_historical=options.include_historical,
            keywords=list(options.custom_parameters.get("keywords") or []),
            locations=list(options.custom_parameters.get("locations") or []),
        )
        outcome = await self._collect_live(request)

        if outcome is not None and outcome.is_live:
            analysis_data = dict(outcome.data)
            live_metadata = outcome.metadata
            await progress.report(80, "External data analysis completed. Processing results...")
        else:
            live_metadata = None
            analysis_data = await self._simulate(params.analysis_types, progress)

        await progress.report(85, "Generating competitive alerts and insights...")
        alerts = generate_alerts(analysis_data, competitors) if options.alerts_enabled else []

        await progress.report(90, "Calculating confidence scores...")
        confidence = calculate_confidence(analysis_data, options.depth, live_metadata)
        metadata = analysis_metadata(
            params.analysis_types,
            options,
            execution_time=round((time.perf_counter() - start) * 1000, 2),
            live_metadata=live_metadata,
        )

        result = CompetitiveAnalysisResult(
            id=job.id,
            project_id=data.project_id,
            competitor_id=params.competitor_ids[0] if params.competitor_ids else "multiple",
            analysis_type=result_analysis_type(params.analysis_types),
            data=analysis_data,
            alerts=alerts,
            confidence=confidence,
            metadata=metadata,
        )

        await progress.report(95, "Storing analysis results...")
        await self._publish(
            lambda: self.repository.save_competitive_result(job.id, data.project_id, result.to_dict()),
            CacheEvent.COMPETITIVE_ANALYSIS_COMPLETED,
            data.project_id,
        )

        await progress.report(100, "Competitive analysis completed successfully!")
        logger.info(
            f"Competitive analysis for {params.target_domain}: strategy={result.strategy}, "
            f"confidence={confidence.overall}, alerts={len(alerts)}"
        )
        return result

    # =========================================================================
    # Stages
    # =========================================================================

    async def _load_competitors(self, competitor_ids: List[str]) -> List[Competitor]:
        """Stored competitors, with placeholders for any id the lookup cannot supply."""
        if self.repository is None:
            return placeholder_competitors(competitor_ids)

        try:
            found = {c.id: c for c in self.repository.load_competitors(competitor_ids)}
        except Exception as e:
            logger.warning(f"Competitor lookup failed, using placeholders: {e}")
            return placeholder_competitors(competitor_ids)

        placeholders = placeholder_competitors(competitor_ids)
        if not found:
            logger.warning("No competitor records found, using placeholders")
        return [found.get(p.id, p) for p in placeholders]

    async def _collect_live(self, request: CompetitiveDataRequest) -> Optional[DataSourceResult]:
        if self.live_source is None:
            logger.info("No live competitive data source configured")
            return None
        try:
            outcome = await self.live_source.collect(request)
        except Exception as e:
            logger.warning(f"Live competitive data collection failed: {e}")
            return None
        if not outcome.is_live:
            logger.warning(f"Live competitive data unavailable, falling back to simulated data: {outcome.error}")
        return outcome

    async def _simulate(self, analysis_types: List[str], progress: ProgressReporter) -> Dict[str, Any]:
        await progress.report(30, "External data unavailable, generating simulated analysis data...")
        analysis_data: Dict[str, Any] = {}
        step = SIMULATION_SPAN / len(analysis_types)
        for index, analysis_type in enumerate(analysis_types):
            await progress.report(
                int(SIMULATION_START + index * step),
                f"Processing {analysis_type} analysis (simulated)...",
            )
            analysis_data.update(self.simulated_source.generate(analysis_type))
        return analysis_data
