"""
Job Runner

Dispatches jobs to the processor registered for their type and keeps
the tracker's job record in step with the outcome.

    runner = build_runner(get_settings())
    job = runner.tracker.create_job(JobType.SEO_HEALTH_CHECK, data)
    result = await runner.run(job)
"""

import logging
from typing import Dict, Any, Optional

from .base import JobProcessor
from .models import Job, JobResult, JobType
from .progress import JobTracker
from ..utils.errors import JobValidationError

logger = logging.getLogger(__name__)


class JobRunner:
    """Maps job types to processors and runs jobs through them."""

    def __init__(self, tracker: Optional[JobTracker] = None, clients=None):
        self.tracker = tracker or JobTracker()
        self.clients = clients
        self._processors: Dict[JobType, JobProcessor] = {}

    def register(self, processor: JobProcessor):
        self._processors[processor.job_type] = processor
        logger.debug(f"Registered {processor.__class__.__name__} for {processor.job_type.value}")

    def processor_for(self, job_type: JobType) -> JobProcessor:
        processor = self._processors.get(job_type)
        if processor is None:
            raise KeyError(f"No processor registered for {job_type.value}")
        return processor

    @property
    def job_types(self):
        return list(self._processors)

    def validate(self, job_type: JobType, data: Dict[str, Any]) -> bool:
        return self.processor_for(job_type).validate(data)

    def estimate(self, job_type: JobType, data: Dict[str, Any]) -> int:
        """Estimated seconds; raises JobValidationError for invalid data."""
        return self.processor_for(job_type).estimate_processing_time(data)

    def submit(self, job_type: JobType, data: Dict[str, Any], priority: str = "normal") -> Job:
        """Validate and register a pending job."""
        processor = self.processor_for(job_type)
        processor.parse(data)
        return self.tracker.create_job(job_type, data, priority)

    async def run(self, job: Job) -> JobResult:
        """
        Process a job and record its outcome in the tracker.

        Jobs that fail validation are marked failed without being
        attempted.
        """
        processor = self.processor_for(job.type)
        if self.tracker.get_job(job.id) is None:
            self.tracker.add_job(job)

        if not processor.validate(job.data):
            error = JobValidationError("job data failed validation")
            self.tracker.mark_failed(job.id, error.user_message)
            return JobResult.failure(error=error.user_message, retryable=False)

        self.tracker.mark_started(job.id)
        result = await processor.process(job)

        if result.success:
            self.tracker.mark_completed(job.id, result.to_dict()["data"])
        else:
            self.tracker.mark_failed(job.id, result.error)
        return result

    async def close(self):
        if self.clients is not None:
            await self.clients.close()


def build_runner(settings, tracker: Optional[JobTracker] = None) -> JobRunner:
    """
    Wire every processor from settings.

    Optional collaborators (AI, embeddings, SERP, PageSpeed, Redis) are
    only created when configured.
    """
    from ..cache import CacheInvalidator, create_analytics_cache
    from ..database import ResultRepository
    from ..integrations import ExternalClients
    from ..processors import (
        CompetitiveAnalysisProcessor,
        ContentQualityProcessor,
        IntegrationCoordinator,
        LiveDataSource,
        PageSpeedSource,
        ScrapedContentSource,
        SEOHealthProcessor,
        SerpRankingSource,
    )
    from ..semantic import SemanticAnalysisEngine, SemanticEngineConfig
    from ..utils.retry import RetryPolicies

    clients = ExternalClients(settings)
    clients.log_status()

    tracker = tracker or JobTracker(settings.JOBS_PATH)
    retry = RetryPolicies.from_settings(settings)
    engine = SemanticAnalysisEngine(SemanticEngineConfig(spacy_model=settings.SPACY_MODEL))
    common = {
        "progress_sink": tracker,
        "retry_policies": retry,
        "repository": ResultRepository(),
        "cache_invalidator": CacheInvalidator(create_analytics_cache(settings)),
        "retry_after": settings.RETRY_AFTER_SECONDS,
    }

    sources = [ScrapedContentSource(clients.fetcher, engine, retry.optional)]
    if clients.serp is not None:
        sources.append(SerpRankingSource(clients.serp, retry.optional))
    if clients.pagespeed is not None:
        sources.append(PageSpeedSource(clients.pagespeed, retry.optional))

    runner = JobRunner(tracker, clients)
    runner.register(ContentQualityProcessor(
        clients.fetcher,
        engine,
        ai_client=clients.claude,
        embedding_client=clients.embeddings,
        variant=settings.CONTENT_SCORING_VARIANT,
        **common,
    ))
    runner.register(SEOHealthProcessor(clients.fetcher, pagespeed=clients.pagespeed, **common))
    runner.register(CompetitiveAnalysisProcessor(
        live_source=LiveDataSource(IntegrationCoordinator(sources)),
        **common,
    ))
    return runner
