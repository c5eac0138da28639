"""
Job Processing

Job envelope and typed params, the processor contract, progress
reporting and the runner that ties processors to a tracker.
"""

from .base import JobProcessor, StageOutcome, StageStatus, degraded_stages, run_optional_stage
from .models import (
    CompetitiveAnalysisParams,
    CompetitiveOptions,
    ContentAnalysisParams,
    Job,
    JobData,
    JobPriority,
    JobResult,
    JobStatus,
    JobType,
    SEOHealthParams,
    parse_job_data,
)
from .progress import JobTracker, NullProgressSink, ProgressReporter, ProgressSink
from .runner import JobRunner, build_runner

__all__ = [
    "JobProcessor",
    "StageOutcome",
    "StageStatus",
    "degraded_stages",
    "run_optional_stage",
    "CompetitiveAnalysisParams",
    "CompetitiveOptions",
    "ContentAnalysisParams",
    "Job",
    "JobData",
    "JobPriority",
    "JobResult",
    "JobStatus",
    "JobType",
    "SEOHealthParams",
    "parse_job_data",
    "JobTracker",
    "NullProgressSink",
    "ProgressReporter",
    "ProgressSink",
    "JobRunner",
    "build_runner",
]
