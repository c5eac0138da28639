"""
Job Models

The job envelope handed over by the queue, the typed parameter variants
for each job type, and the terminal JobResult.

Params form a tagged union keyed by job type. Raw payloads are validated
into the matching variant at the boundary, before any processor logic
runs. Both camelCase and snake_case keys are accepted.
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class JobType(Enum):
    """Job types handled by the engine."""
    CONTENT_ANALYSIS = "content-analysis"
    SEO_HEALTH_CHECK = "seo-health-check"
    COMPETITIVE_ANALYSIS = "competitive-analysis"


class JobStatus(Enum):
    """Job status states."""
    PENDING = "pending"           # Queued, not started
    PROCESSING = "processing"     # Processor running
    COMPLETED = "completed"       # Successfully finished
    FAILED = "failed"             # Failed with error
    CANCELLED = "cancelled"       # Removed by the queue


class JobPriority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


# ============================================================================
# TYPED PARAMS
# ============================================================================

class _PayloadModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ContentAnalysisParams(_PayloadModel):
    """Params for a content quality job."""
    kind: Literal["content-analysis"] = "content-analysis"
    website_url: str = Field(min_length=1)
    target_keywords: List[str] = Field(min_length=1)
    competitor_urls: List[str] = Field(default_factory=list)
    analysis_depth: Literal["basic", "standard", "comprehensive"] = "standard"


class SEOHealthParams(_PayloadModel):
    """Params for an SEO health job."""
    kind: Literal["seo-health-check"] = "seo-health-check"
    website_url: str = Field(min_length=1)
    pages: List[str] = Field(min_length=1)
    include_performance: bool = False
    include_mobile: bool = False


AnalysisTypeName = Literal[
    "content-similarity",
    "seo-comparison",
    "performance-benchmark",
    "market-position",
    "content-gaps",
    "comprehensive",
]


class CompetitiveOptions(_PayloadModel):
    depth: Literal["basic", "standard", "comprehensive"] = "standard"
    include_historical: bool = False
    alerts_enabled: bool = True
    custom_parameters: Dict[str, Any] = Field(default_factory=dict)


class CompetitiveAnalysisParams(_PayloadModel):
    """Params for a competitive analysis job."""
    kind: Literal["competitive-analysis"] = "competitive-analysis"
    target_domain: str = Field(min_length=1)
    competitor_ids: List[str] = Field(min_length=1)
    analysis_types: List[AnalysisTypeName] = Field(min_length=1)
    options: CompetitiveOptions


JobParams = Annotated[
    Union[ContentAnalysisParams, SEOHealthParams, CompetitiveAnalysisParams],
    Field(discriminator="kind"),
]


class JobData(_PayloadModel):
    """Validated job data: owner identifiers plus typed params."""
    project_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    team_id: str = Field(min_length=1)
    params: JobParams


_job_data_adapter = TypeAdapter(JobData)


def parse_job_data(job_type: JobType, raw: Dict[str, Any]) -> JobData:
    """
    Validate a raw job payload into its typed variant.

    The job type selects the params variant; a "kind" value already
    present in the payload is overridden.

    Raises:
        pydantic.ValidationError: When required fields are missing or invalid
    """
    raw = dict(raw) if isinstance(raw, dict) else {}
    params = dict(raw["params"]) if isinstance(raw.get("params"), dict) else {}
    params["kind"] = job_type.value
    raw["params"] = params
    return _job_data_adapter.validate_python(raw)


# ============================================================================
# JOB ENVELOPE
# ============================================================================

@dataclass
class Job:
    """Job as handed over by the queue. Read-only to processors."""
    id: str
    type: JobType
    data: Dict[str, Any]
    status: JobStatus = JobStatus.PENDING
    priority: JobPriority = JobPriority.NORMAL
    attempts: int = 0
    max_attempts: int = 3
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    # Progress tracking
    progress: int = 0
    progress_message: Optional[str] = None

    # Outcome
    result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        job_type: Union[JobType, str],
        data: Dict[str, Any],
        priority: Union[JobPriority, str] = JobPriority.NORMAL,
    ) -> "Job":
        return cls(
            id=str(uuid.uuid4()),
            type=JobType(job_type),
            data=data,
            priority=JobPriority(priority),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["type"] = self.type.value
        data["status"] = self.status.value
        data["priority"] = self.priority.value
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        if self.completed_at:
            data["completed_at"] = self.completed_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """Create from dictionary."""
        data = dict(data)
        data["type"] = JobType(data["type"])
        data["status"] = JobStatus(data["status"])
        data["priority"] = JobPriority(data["priority"])
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["updated_at"] = datetime.fromisoformat(data["updated_at"])
        if data.get("completed_at"):
            data["completed_at"] = datetime.fromisoformat(data["completed_at"])
        return cls(**data)

    def update_status(self, status: JobStatus):
        """Update job status and completion timestamp."""
        self.status = status
        self.updated_at = datetime.now()
        if status in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED):
            self.completed_at = datetime.now()


# ============================================================================
# RESULT
# ============================================================================

@dataclass(frozen=True)
class JobResult:
    """
    Terminal value returned once per process() call.

    A failed result never carries data.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    retryable: bool = False
    progress: int = 0
    progress_message: Optional[str] = None
    retry_after: Optional[int] = None

    def __post_init__(self):
        if not self.success and self.data is not None:
            raise ValueError("A failed JobResult cannot carry data")

    @classmethod
    def ok(cls, data: Any, message: str = "Analysis completed successfully") -> "JobResult":
        return cls(success=True, data=data, progress=100, progress_message=message)

    @classmethod
    def failure(
        cls,
        error: str,
        retryable: bool,
        progress: int = 0,
        retry_after: Optional[int] = None,
    ) -> "JobResult":
        return cls(
            success=False,
            error=error,
            retryable=retryable,
            progress=progress,
            retry_after=retry_after if retryable else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        return {
            "success": self.success,
            "data": data,
            "error": self.error,
            "retryable": self.retryable,
            "progress": self.progress,
            "progress_message": self.progress_message,
            "retry_after": self.retry_after,
        }
