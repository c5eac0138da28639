"""
API Endpoints for Analysis Jobs

FastAPI app that:
1. Accepts content-analysis, seo-health-check and competitive-analysis jobs
2. Validates job data before anything runs
3. Processes jobs in the background
4. Exposes job progress and results for polling
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from analysis_engine import __version__
from analysis_engine.database import check_db_connection, init_db
from analysis_engine.jobs import JobPriority, JobRunner, JobType, build_runner
from analysis_engine.utils import JobValidationError, get_settings

# Configure logging to stdout
logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

app = FastAPI(
    title="Analysis Engine",
    description="Content quality, SEO health and competitive analysis jobs",
    version=__version__,
)

_runner: Optional[JobRunner] = None


def get_runner() -> JobRunner:
    """Process-wide runner, built on first use."""
    global _runner
    if _runner is None:
        _runner = build_runner(get_settings())
    return _runner


# ============================================================================
# STARTUP / SHUTDOWN
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    if _runner is not None:
        await _runner.close()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class JobRequest(BaseModel):
    """Job submission. `data` carries projectId, userId, teamId and params."""
    type: JobType
    data: Dict[str, Any]
    priority: JobPriority = JobPriority.NORMAL


class EstimateRequest(BaseModel):
    type: JobType
    data: Dict[str, Any]


class JobSubmitted(BaseModel):
    job_id: str
    type: str
    status: str
    estimated_seconds: int
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    type: str
    status: str
    progress: int = 0
    progress_message: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: str
    completed_at: Optional[str] = None


class EstimateResponse(BaseModel):
    type: str
    valid: bool
    estimated_seconds: Optional[int] = None
    error: Optional[str] = Field(default=None, description="Validation problem when valid is false")


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/health")
async def health(runner: JobRunner = Depends(get_runner)):
    """Health check including database and job counts."""
    try:
        db_connected = check_db_connection()
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        db_connected = False

    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "job_types": [t.value for t in runner.job_types],
        "jobs": runner.tracker.get_stats(),
        "database": "connected" if db_connected else "disconnected",
    }


@app.post("/jobs", response_model=JobSubmitted, status_code=202)
async def submit_job(
    request: JobRequest,
    background_tasks: BackgroundTasks,
    runner: JobRunner = Depends(get_runner),
):
    """
    Submit an analysis job.

    Invalid job data is rejected with 422 and the job is never created.
    """
    try:
        estimate = runner.estimate(request.type, request.data)
        job = runner.submit(request.type, request.data, request.priority.value)
    except JobValidationError as e:
        raise HTTPException(status_code=422, detail=e.user_message)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Job {job.id} submitted ({job.type.value}), estimated {estimate}s")
    background_tasks.add_task(runner.run, job)

    return JobSubmitted(
        job_id=job.id,
        type=job.type.value,
        status=job.status.value,
        estimated_seconds=estimate,
        message="Job accepted. Poll /jobs/{job_id} for progress.",
    )


@app.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job(job_id: str, runner: JobRunner = Depends(get_runner)):
    """Current status, progress and (when finished) result of a job."""
    job = runner.tracker.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobStatusResponse(
        job_id=job.id,
        type=job.type.value,
        status=job.status.value,
        progress=job.progress,
        progress_message=job.progress_message,
        result=job.result,
        error=job.error_message,
        created_at=job.created_at.isoformat(),
        completed_at=job.completed_at.isoformat() if job.completed_at else None,
    )


@app.post("/jobs/estimate", response_model=EstimateResponse)
async def estimate_job(request: EstimateRequest, runner: JobRunner = Depends(get_runner)):
    """Validate job data and estimate its processing time without running it."""
    try:
        seconds = runner.estimate(request.type, request.data)
    except JobValidationError as e:
        return EstimateResponse(type=request.type.value, valid=False, error=e.user_message)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return EstimateResponse(type=request.type.value, valid=True, estimated_seconds=seconds)
