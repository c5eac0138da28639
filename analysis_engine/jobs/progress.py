"""
Job Progress Tracking

Progress side channel used by every processor, and the bundled job
tracker that implements it.

Consumers polling a job always observe non-decreasing progress: the
tracker ignores regressions and the per-job reporter never emits one.
"""

import os
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict, Any, List

from .models import Job, JobStatus, JobType

logger = logging.getLogger(__name__)


class ProgressSink(ABC):
    """Receives (percent, message) updates keyed by job id."""

    @abstractmethod
    async def update_progress(self, job_id: str, percent: int, message: str) -> None:
        ...


class NullProgressSink(ProgressSink):
    """Discards updates."""

    async def update_progress(self, job_id: str, percent: int, message: str) -> None:
        return None


class ProgressReporter:
    """
    Per-job progress reporter.

    Clamps to 0..100 and refuses to move backwards, so a processor that
    takes a fallback branch with a lower nominal milestone still reports
    monotonic progress.
    """

    def __init__(self, sink: ProgressSink, job_id: str):
        self.sink = sink
        self.job_id = job_id
        self.percent = 0
        self.message: Optional[str] = None
        self.history: List[int] = []

    async def report(self, percent: int, message: str):
        percent = max(self.percent, min(100, max(0, int(round(percent)))))
        self.percent = percent
        self.message = message
        self.history.append(percent)
        logger.debug(f"Job {self.job_id}: {percent}% {message}")
        await self.sink.update_progress(self.job_id, percent, message)


class JobTracker(ProgressSink):
    """
    Tracks analysis jobs.

    Provides job lifecycle management and status queries. Jobs are kept
    in memory and, when a storage path is configured, written as JSON
    files so status survives a restart.
    """

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize job tracker.

        Args:
            storage_path: Directory for job data. Falls back to the
                         ANALYSIS_JOBS_PATH environment variable; memory
                         only when neither is set.
        """
        storage_path = storage_path or os.getenv("ANALYSIS_JOBS_PATH")
        self.storage_path = Path(storage_path) if storage_path else None
        if self.storage_path:
            self.storage_path.mkdir(parents=True, exist_ok=True)

        self._jobs: Dict[str, Job] = {}
        self._load_jobs()

    def _get_job_path(self, job_id: str) -> Path:
        """Get path for job file."""
        return self.storage_path / f"{job_id}.json"

    def _load_jobs(self):
        """Load persisted jobs from storage."""
        if not self.storage_path:
            return

        for file_path in self.storage_path.glob("*.json"):
            try:
                with open(file_path, "r") as f:
                    job = Job.from_dict(json.load(f))
                self._jobs[job.id] = job
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Failed to load job from {file_path}: {e}")

        logger.info(f"Loaded {len(self._jobs)} jobs")

    def _save_job(self, job: Job):
        """Persist job to storage."""
        if not self.storage_path:
            return

        path = self._get_job_path(job.id)
        try:
            with open(path, "w") as f:
                json.dump(job.to_dict(), f, indent=2, default=str)
        except OSError as e:
            logger.error(f"Failed to save job {job.id}: {e}")

    def create_job(
        self,
        job_type: JobType,
        data: Dict[str, Any],
        priority: str = "normal",
    ) -> Job:
        """Register a new pending job."""
        job = Job.create(job_type, data, priority)
        self.add_job(job)
        logger.info(f"Created job {job.id} ({job.type.value})")
        return job

    def add_job(self, job: Job):
        self._jobs[job.id] = job
        self._save_job(job)

    def get_job(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        limit: int = 50,
    ) -> List[Job]:
        """List jobs, newest first."""
        jobs = list(self._jobs.values())
        if status:
            jobs = [j for j in jobs if j.status == status]
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return jobs[:limit]

    async def update_progress(self, job_id: str, percent: int, message: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.debug(f"Progress for unknown job {job_id} ignored")
            return

        percent = min(100, max(0, int(percent)))
        if percent < job.progress:
            logger.debug(f"Job {job_id}: ignoring progress regression {job.progress} -> {percent}")
            return

        job.progress = percent
        job.progress_message = message
        self._save_job(job)

    def mark_started(self, job_id: str):
        job = self._jobs.get(job_id)
        if job:
            job.attempts += 1
            job.update_status(JobStatus.PROCESSING)
            self._save_job(job)

    def mark_completed(self, job_id: str, result: Optional[Dict[str, Any]] = None):
        job = self._jobs.get(job_id)
        if job:
            job.result = result
            job.progress = 100
            job.update_status(JobStatus.COMPLETED)
            self._save_job(job)
            logger.info(f"Job {job_id} completed")

    def mark_failed(self, job_id: str, error: str):
        job = self._jobs.get(job_id)
        if job:
            job.error_message = error
            job.update_status(JobStatus.FAILED)
            self._save_job(job)
            logger.error(f"Job {job_id} failed: {error}")

    def get_stats(self) -> Dict[str, int]:
        """Count jobs per status."""
        stats = {status.value: 0 for status in JobStatus}
        for job in self._jobs.values():
            stats[job.status.value] += 1
        return stats
