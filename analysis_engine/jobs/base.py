"""
Job Processor Contract

Every processor implements three operations:

- validate(data): total predicate over the raw job data, never raises
- estimate_processing_time(data): seconds, for scheduling and ETA only
- process(job): runs the stage pipeline and returns one JobResult

Optional stages are wrapped in StageOutcome so a degraded sub-result
is recorded instead of failing the job.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from pydantic import ValidationError

from .models import Job, JobData, JobResult, JobType, parse_job_data
from .progress import NullProgressSink, ProgressReporter, ProgressSink
from ..cache.invalidation import CacheEvent, CacheInvalidator, InvalidationResult
from ..database.repository import ResultRepository
from ..utils.errors import DEFAULT_RETRY_AFTER, AnalysisError, JobValidationError, to_analysis_error
from ..utils.retry import RetryPolicies

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageStatus(Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class StageOutcome(Generic[T]):
    """Outcome of a single pipeline stage."""
    stage: str
    status: StageStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == StageStatus.OK

    @property
    def usable(self) -> bool:
        """True when the stage produced a value the merge step can use."""
        return self.status != StageStatus.FAILED

    @classmethod
    def success(cls, stage: str, value: T) -> "StageOutcome[T]":
        return cls(stage=stage, status=StageStatus.OK, value=value)

    @classmethod
    def degraded(cls, stage: str, value: T, error: str) -> "StageOutcome[T]":
        return cls(stage=stage, status=StageStatus.DEGRADED, value=value, error=error)

    @classmethod
    def failed(cls, stage: str, error: str) -> "StageOutcome[T]":
        return cls(stage=stage, status=StageStatus.FAILED, error=error)


async def run_optional_stage(
    stage: str,
    operation: Callable[[], Awaitable[T]],
    fallback: Optional[Callable[[], T]] = None,
) -> StageOutcome[T]:
    """
    Run a best-effort stage.

    Args:
        stage: Stage name for logging and metadata
        operation: Zero-argument coroutine factory
        fallback: Produces the degraded value when the operation raises;
                  without one, or when it raises too, the outcome is FAILED

    Returns:
        StageOutcome; never raises for errors raised by the operation
        or the fallback
    """
    try:
        return StageOutcome.success(stage, await operation())
    except Exception as e:
        error = str(e) or e.__class__.__name__
        if fallback is None:
            logger.warning(f"Optional stage '{stage}' unavailable: {error}")
            return StageOutcome.failed(stage, error)

    try:
        value = fallback()
    except Exception as fallback_error:
        reason = str(fallback_error) or fallback_error.__class__.__name__
        logger.error(f"Optional stage '{stage}' fallback failed: {reason}")
        return StageOutcome.failed(stage, f"{error}; fallback failed: {reason}")

    logger.warning(f"Optional stage '{stage}' degraded to fallback: {error}")
    return StageOutcome.degraded(stage, value, error)


def degraded_stages(*outcomes: StageOutcome) -> Dict[str, str]:
    """Stage name -> error for every outcome that is not OK."""
    return {o.stage: o.error or "" for o in outcomes if o is not None and not o.ok}


class JobProcessor(ABC):
    """
    Base class for analysis job processors.

    Subclasses set job_type and implement estimate_processing_time and
    _run. The base class handles payload validation, progress reporting
    setup, result publication and conversion of every exception into a
    failed JobResult.

    Collaborators are injected; when repository or cache_invalidator is
    None the corresponding step is skipped.
    """

    job_type: JobType
    display_name: str = "analysis"

    def __init__(
        self,
        progress_sink: Optional[ProgressSink] = None,
        retry_policies: Optional[RetryPolicies] = None,
        repository: Optional[ResultRepository] = None,
        cache_invalidator: Optional[CacheInvalidator] = None,
        retry_after: int = DEFAULT_RETRY_AFTER,
    ):
        self.progress_sink = progress_sink or NullProgressSink()
        self.retry = retry_policies or RetryPolicies()
        self.repository = repository
        self.cache_invalidator = cache_invalidator
        self.retry_after = retry_after

    def parse(self, data: Dict[str, Any]) -> JobData:
        """Validate raw job data into the typed variant or raise JobValidationError."""
        try:
            return parse_job_data(self.job_type, data)
        except ValidationError as e:
            fields = ", ".join(
                ".".join(str(part) for part in err["loc"]) for err in e.errors()
            )
            raise JobValidationError(f"invalid or missing fields: {fields}") from e

    def validate(self, data: Dict[str, Any]) -> bool:
        try:
            self.parse(data)
        except JobValidationError as e:
            logger.info(f"{self.job_type.value} job rejected: {e}")
            return False
        return True

    @abstractmethod
    def estimate_processing_time(self, data: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    async def _run(self, job: Job, data: JobData, progress: ProgressReporter) -> Any:
        """Run all stages and return the result payload."""

    async def process(self, job: Job) -> JobResult:
        progress = ProgressReporter(self.progress_sink, job.id)
        try:
            data = self.parse(job.data)
            logger.info(f"Starting {self.job_type.value} job {job.id} for project {data.project_id}")
            result = await self._run(job, data, progress)
            logger.info(f"{self.job_type.value} job {job.id} completed")
            return JobResult.ok(result, message=progress.message or "Analysis completed successfully")
        except Exception as e:
            error = to_analysis_error(e, self.display_name)
            return self._failure(job, error, progress)

    async def _publish(
        self,
        store: Callable[[], Any],
        event: CacheEvent,
        project_id: str,
    ) -> Optional[InvalidationResult]:
        """
        Persist the finished result, then invalidate dependent caches.

        The store callable runs under the database retry policy and its
        failure propagates. Invalidation problems are reported in the
        returned InvalidationResult only.
        """
        if self.repository is not None:
            async def _store():
                return store()

            await self.retry.database.run(_store, name=f"{self.job_type.value}-store")

        if self.cache_invalidator is None:
            return None

        result = await self.cache_invalidator.on_event(event, project_id)
        if not result.success:
            logger.warning(f"Cache invalidation incomplete for project {project_id}: {result.errors}")
        return result

    def _failure(self, job: Job, error: AnalysisError, progress: ProgressReporter) -> JobResult:
        logger.error(
            f"{self.job_type.value} job {job.id} failed "
            f"({error.category.value}, retryable={error.retryable}): {error.message}"
        )
        retry_after = error.retry_after or self.retry_after
        return JobResult.failure(
            error=error.user_message,
            retryable=error.retryable,
            progress=progress.percent,
            retry_after=retry_after,
        )
