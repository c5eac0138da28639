"""
Tests for the job layer.

These tests verify:
- Payload parsing for every job type
- The JobResult invariant
- Progress reporting and the job tracker
- Retry policy and error classification
- Optional stage outcomes
- The job runner
"""

import json

import httpx
import pytest
from pydantic import ValidationError

from analysis_engine.jobs import (
    ContentAnalysisParams,
    Job,
    JobProcessor,
    JobResult,
    JobRunner,
    JobStatus,
    JobTracker,
    JobType,
    ProgressReporter,
    SEOHealthParams,
    StageStatus,
    degraded_stages,
    parse_job_data,
    run_optional_stage,
)
from analysis_engine.processors import SEOHealthProcessor
from analysis_engine.utils.errors import (
    ErrorCategory,
    ExternalServiceError,
    JobValidationError,
    ProcessingError,
    classify_error,
    is_retryable_message,
    to_analysis_error,
)
from analysis_engine.utils.retry import RetryPolicy


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

class TestParseJobData:
    """Test the typed params boundary."""

    def test_camel_case(self, content_job_data):
        data = parse_job_data(JobType.CONTENT_ANALYSIS, content_job_data)
        assert data.project_id == "project-1"
        assert isinstance(data.params, ContentAnalysisParams)
        assert data.params.target_keywords == ["content marketing", "organic growth"]
        assert data.params.analysis_depth == "standard"

    def test_snake_case(self):
        raw = {
            "project_id": "p",
            "user_id": "u",
            "team_id": "t",
            "params": {"website_url": "https://example.com", "pages": ["https://example.com"]},
        }
        data = parse_job_data(JobType.SEO_HEALTH_CHECK, raw)
        assert isinstance(data.params, SEOHealthParams)
        assert data.params.include_performance is False

    def test_job_type_selects_variant(self, content_job_data):
        content_job_data["params"]["kind"] = "seo-health-check"
        data = parse_job_data(JobType.CONTENT_ANALYSIS, content_job_data)
        assert data.params.kind == "content-analysis"

    def test_input_not_mutated(self, content_job_data):
        parse_job_data(JobType.CONTENT_ANALYSIS, content_job_data)
        assert "kind" not in content_job_data["params"]

    def test_competitive_options(self, competitive_job_data):
        data = parse_job_data(JobType.COMPETITIVE_ANALYSIS, competitive_job_data)
        options = data.params.options
        assert options.depth == "standard"
        assert options.alerts_enabled is True
        assert options.include_historical is False
        assert options.custom_parameters == {}

    @pytest.mark.parametrize("field", ["projectId", "userId", "teamId"])
    def test_owner_ids_required(self, content_job_data, field):
        content_job_data[field] = ""
        with pytest.raises(ValidationError):
            parse_job_data(JobType.CONTENT_ANALYSIS, content_job_data)

    def test_bad_depth_rejected(self, content_job_data):
        content_job_data["params"]["analysisDepth"] = "exhaustive"
        with pytest.raises(ValidationError):
            parse_job_data(JobType.CONTENT_ANALYSIS, content_job_data)


# =============================================================================
# JOB RESULT
# =============================================================================

class TestJobResult:
    """A failed result never carries data."""

    def test_failure_with_data_rejected(self):
        with pytest.raises(ValueError):
            JobResult(success=False, data={"overall_score": 10})

    def test_non_retryable_drops_retry_after(self):
        result = JobResult.failure("Invalid job parameters", retryable=False, retry_after=120)
        assert result.retry_after is None

    def test_retryable_keeps_retry_after(self):
        result = JobResult.failure("Service unavailable", retryable=True, progress=40, retry_after=120)
        assert result.retry_after == 120
        assert result.progress == 40
        assert result.data is None

    def test_ok(self):
        result = JobResult.ok({"overall_score": 80})
        assert result.success
        assert result.progress == 100
        assert result.to_dict()["data"] == {"overall_score": 80}


# =============================================================================
# PROGRESS
# =============================================================================

class TestProgressReporter:
    """Progress is clamped and never moves backwards."""

    @pytest.mark.asyncio
    async def test_monotonic(self, recording_sink):
        reporter = ProgressReporter(recording_sink, "job-1")
        for percent in (10, 40, 30, 150):
            await reporter.report(percent, "step")
        assert recording_sink.percents == [10, 40, 40, 100]
        assert reporter.percent == 100

    @pytest.mark.asyncio
    async def test_negative_clamped(self, recording_sink):
        reporter = ProgressReporter(recording_sink, "job-1")
        await reporter.report(-5, "start")
        assert recording_sink.percents == [0]


class TestJobTracker:
    """Test job lifecycle and persistence."""

    def test_create_and_get(self, content_job_data):
        tracker = JobTracker()
        job = tracker.create_job(JobType.CONTENT_ANALYSIS, content_job_data)

        assert tracker.get_job(job.id) is job
        assert job.status == JobStatus.PENDING
        assert tracker.get_job("missing") is None

    @pytest.mark.asyncio
    async def test_progress_regression_ignored(self, content_job_data):
        tracker = JobTracker()
        job = tracker.create_job(JobType.CONTENT_ANALYSIS, content_job_data)

        await tracker.update_progress(job.id, 60, "Analyzing")
        await tracker.update_progress(job.id, 20, "Late update")

        assert job.progress == 60
        assert job.progress_message == "Analyzing"

    @pytest.mark.asyncio
    async def test_unknown_job_progress_ignored(self):
        tracker = JobTracker()
        await tracker.update_progress("nope", 50, "ignored")
        assert tracker.list_jobs() == []

    @pytest.mark.asyncio
    async def test_persisted_across_instances(self, tmp_path, seo_job_data):
        tracker = JobTracker(str(tmp_path))
        job = tracker.create_job(JobType.SEO_HEALTH_CHECK, seo_job_data, priority="high")
        await tracker.update_progress(job.id, 40, "Analyzing pages")
        tracker.mark_started(job.id)

        reloaded = JobTracker(str(tmp_path)).get_job(job.id)

        assert reloaded.type == JobType.SEO_HEALTH_CHECK
        assert reloaded.status == JobStatus.PROCESSING
        assert reloaded.progress == 40
        assert reloaded.attempts == 1
        assert reloaded.data == seo_job_data

    def test_corrupt_file_skipped(self, tmp_path, seo_job_data):
        tracker = JobTracker(str(tmp_path))
        job = tracker.create_job(JobType.SEO_HEALTH_CHECK, seo_job_data)
        (tmp_path / "broken.json").write_text("{")

        reloaded = JobTracker(str(tmp_path))
        assert [j.id for j in reloaded.list_jobs()] == [job.id]

    def test_completed_and_failed(self, tmp_path, seo_job_data):
        tracker = JobTracker(str(tmp_path))
        done = tracker.create_job(JobType.SEO_HEALTH_CHECK, seo_job_data)
        failed = tracker.create_job(JobType.SEO_HEALTH_CHECK, seo_job_data)

        tracker.mark_completed(done.id, {"overall_score": 91})
        tracker.mark_failed(failed.id, "The seo service is temporarily unavailable.")

        assert done.progress == 100
        assert done.completed_at is not None
        stored = json.loads((tmp_path / f"{failed.id}.json").read_text())
        assert stored["status"] == "failed"
        assert stored["error_message"].startswith("The seo service")

        stats = tracker.get_stats()
        assert stats["completed"] == 1
        assert stats["failed"] == 1
        assert stats["pending"] == 0


# =============================================================================
# ERRORS & RETRY
# =============================================================================

class TestErrorClassification:
    """Test retryability decisions."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Connection reset by peer", True),
            ("Request timeout after 30s", True),
            ("404 Not Found", False),
            ("Validation timeout", False),
            ("something odd happened", True),
        ],
    )
    def test_message_patterns(self, message, expected):
        assert is_retryable_message(message) is expected

    @pytest.mark.parametrize("status,expected", [(404, False), (401, False), (429, True), (503, True)])
    def test_status_codes(self, status, expected):
        assert ExternalServiceError("content fetch", "failed", status_code=status).retryable is expected

    def test_user_message_matches_retryability(self):
        """Only retryable service errors promise the service will come back."""
        outage = ExternalServiceError("content fetch", "HTTP 503", status_code=503)
        rejected = ExternalServiceError("content fetch", "HTTP 404", status_code=404)

        assert "temporarily unavailable" in outage.user_message
        assert "temporarily unavailable" not in rejected.user_message
        assert rejected.user_message.startswith("The content fetch service rejected the request")

    def test_transport_errors_retryable(self):
        assert classify_error(httpx.ReadTimeout("read timed out")) is True
        assert classify_error(httpx.ConnectError("refused")) is True

    def test_validation_never_retryable(self):
        error = JobValidationError("invalid or missing fields: params.pages")
        assert classify_error(error) is False
        assert error.category == ErrorCategory.VALIDATION
        assert error.user_message.startswith("Invalid job parameters")

    def test_wrapping_unknown_errors(self):
        error = to_analysis_error(RuntimeError(), "seo")
        assert isinstance(error, ProcessingError)
        assert error.message == "RuntimeError"
        assert error.user_message.startswith("The seo analysis failed.")
        assert error.to_dict()["category"] == "processing"


class TestRetryPolicy:
    """Test bounded retries."""

    def test_requires_an_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_backoff_capped(self):
        policy = RetryPolicy(initial_delay=1.0, max_delay=10.0)
        assert [policy.delay_for(n) for n in range(5)] == [1.0, 2.0, 4.0, 8.0, 10.0]

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self):
        calls = []

        async def operation():
            calls.append(1)
            raise ExternalServiceError("content fetch", "HTTP 404", status_code=404)

        with pytest.raises(ExternalServiceError):
            await RetryPolicy(max_attempts=3, initial_delay=0.0).run(operation)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) < 3:
                raise httpx.ConnectError("refused")
            return "ok"

        assert await RetryPolicy(max_attempts=3, initial_delay=0.0).run(operation) == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_exhausted_raises_last(self):
        async def operation():
            raise httpx.ConnectError("refused")

        with pytest.raises(httpx.ConnectError):
            await RetryPolicy(max_attempts=2, initial_delay=0.0).run(operation)


# =============================================================================
# OPTIONAL STAGES
# =============================================================================

class TestOptionalStage:
    """Best-effort stages record their outcome instead of raising."""

    @pytest.mark.asyncio
    async def test_success(self):
        async def operation():
            return 42

        outcome = await run_optional_stage("similarity", operation)
        assert outcome.ok
        assert outcome.value == 42

    @pytest.mark.asyncio
    async def test_degraded_with_fallback(self):
        async def operation():
            raise RuntimeError("embeddings offline")

        outcome = await run_optional_stage("similarity", operation, fallback=lambda: 50)
        assert outcome.status == StageStatus.DEGRADED
        assert outcome.value == 50
        assert outcome.usable
        assert degraded_stages(outcome) == {"similarity": "embeddings offline"}

    @pytest.mark.asyncio
    async def test_failed_without_fallback(self):
        async def operation():
            raise ValueError()

        outcome = await run_optional_stage("competitors", operation)
        assert outcome.status == StageStatus.FAILED
        assert not outcome.usable
        assert outcome.error == "ValueError"

    @pytest.mark.asyncio
    async def test_failing_fallback_is_contained(self):
        """A fallback that raises fails the stage, not the caller."""
        async def operation():
            raise RuntimeError("model timeout")

        def fallback():
            raise ValueError("text exceeds parser limit")

        outcome = await run_optional_stage("topic_clusters", operation, fallback=fallback)
        assert outcome.status == StageStatus.FAILED
        assert outcome.value is None
        assert outcome.error == "model timeout; fallback failed: text exceeds parser limit"


# =============================================================================
# RUNNER
# =============================================================================

class UnavailableProcessor(JobProcessor):
    """Fails every job after the first stage."""

    job_type = JobType.CONTENT_ANALYSIS
    display_name = "content"

    def estimate_processing_time(self, data):
        return 1

    async def _run(self, job, data, progress):
        await progress.report(30, "Fetching content...")
        raise ExternalServiceError("content fetch", "HTTP 503 Service Unavailable", status_code=503)


@pytest.fixture
def runner(fetcher_factory, well_formed_page, retry_policies):
    tracker = JobTracker()
    fetcher = fetcher_factory({"https://example.com/guide": well_formed_page})
    runner = JobRunner(tracker)
    runner.register(SEOHealthProcessor(fetcher, progress_sink=tracker, retry_policies=retry_policies))
    return runner


class TestJobRunner:
    """Test dispatch and tracker bookkeeping."""

    def test_unregistered_type(self, runner):
        with pytest.raises(KeyError):
            runner.processor_for(JobType.CONTENT_ANALYSIS)
        assert runner.job_types == [JobType.SEO_HEALTH_CHECK]

    def test_estimate(self, runner, seo_job_data):
        assert runner.estimate(JobType.SEO_HEALTH_CHECK, seo_job_data) == 240

    def test_submit_validates(self, runner, seo_job_data):
        job = runner.submit(JobType.SEO_HEALTH_CHECK, seo_job_data)
        assert runner.tracker.get_job(job.id).status == JobStatus.PENDING

        seo_job_data["params"]["pages"] = []
        with pytest.raises(JobValidationError):
            runner.submit(JobType.SEO_HEALTH_CHECK, seo_job_data)

    @pytest.mark.asyncio
    async def test_run_completes(self, runner, seo_job_data):
        job = runner.submit(JobType.SEO_HEALTH_CHECK, seo_job_data)
        result = await runner.run(job)

        assert result.success
        tracked = runner.tracker.get_job(job.id)
        assert tracked.status == JobStatus.COMPLETED
        assert tracked.progress == 100
        assert tracked.attempts == 1
        assert tracked.result["overall_score"] == result.data.overall_score

    @pytest.mark.asyncio
    async def test_invalid_job_not_attempted(self, runner, seo_job_data):
        seo_job_data["params"]["websiteUrl"] = ""
        job = Job.create(JobType.SEO_HEALTH_CHECK, seo_job_data)

        result = await runner.run(job)

        assert not result.success
        assert result.retryable is False
        tracked = runner.tracker.get_job(job.id)
        assert tracked.status == JobStatus.FAILED
        assert tracked.attempts == 0
        assert tracked.error_message == "Invalid job parameters: job data failed validation"
        runner.processor_for(JobType.SEO_HEALTH_CHECK).fetcher.fetch_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_run_recorded(self, runner, content_job_data):
        runner.register(UnavailableProcessor(progress_sink=runner.tracker))
        job = runner.submit(JobType.CONTENT_ANALYSIS, content_job_data)

        result = await runner.run(job)

        assert not result.success
        assert result.retryable is True
        assert result.progress == 30
        tracked = runner.tracker.get_job(job.id)
        assert tracked.status == JobStatus.FAILED
        assert tracked.progress == 30
        assert tracked.error_message.startswith("The content fetch service is temporarily unavailable")

    @pytest.mark.asyncio
    async def test_close_without_clients(self, runner):
        await runner.close()
