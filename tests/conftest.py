"""Pytest configuration and fixtures."""
import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, AsyncMock

import pytest

from database.repositories.job_repo import JobStatus
from pipeline.executor import PipelineExecutor
from pipeline.generator import ContentGenerator
from pipeline.models import GeneratedArtifact, ReportSpec
from pipeline.persister import ArtifactPersister
from pipeline.poller import JobPoller
from pipeline.progress import ProgressTracker
from pipeline.state_machine import JobStateMachine
from shared.exceptions import ArtifactGenerationError
from shared.utils import get_utc_now


class InMemoryJobRepository:
    """Job store with the same conditional-write rules as JobRepository."""

    def __init__(self, jobs=None):
        self.jobs = {job["_id"]: dict(job) for job in jobs or []}
        self.writes = []
        self.status_history = defaultdict(list)
        self.progress_history = defaultdict(list)

    def _set(self, job, **fields):
        job.update(fields)
        job["updated_at"] = get_utc_now()
        self.writes.append((job["_id"], fields))
        if "status" in fields:
            self.status_history[job["_id"]].append(fields["status"])

    async def get_job(self, job_id):
        job = self.jobs.get(job_id)
        return dict(job) if job else None

    async def find_oldest_pending(self):
        pending = [job for job in self.jobs.values() if job["status"] == JobStatus.PENDING]
        oldest = dict(min(pending, key=lambda job: job["created_at"])) if pending else None
        # Yield so concurrent pollers can interleave between read and claim
        await asyncio.sleep(0)
        return oldest

    async def claim_job(self, job_id):
        job = self.jobs.get(job_id)
        if not job or job["status"] != JobStatus.PENDING:
            return None
        self._set(
            job,
            status=JobStatus.PROCESSING,
            progress=0,
            current_stage=None,
            started_at=get_utc_now()
        )
        return dict(job)

    async def update_progress(self, job_id, progress, current_stage):
        job = self.jobs.get(job_id)
        if not job or job["status"] != JobStatus.PROCESSING or job["progress"] > progress:
            return False
        self._set(job, progress=progress, current_stage=current_stage)
        self.progress_history[job_id].append(progress)
        return True

    async def complete_job(self, job_id, manifest=None):
        job = self.jobs.get(job_id)
        if not job or job["status"] != JobStatus.PROCESSING:
            return False
        now = get_utc_now()
        self._set(
            job,
            status=JobStatus.COMPLETED,
            progress=100,
            current_stage=None,
            manifest=manifest,
            completed_at=now
        )
        return True

    async def fail_job(self, job_id, error_message):
        job = self.jobs.get(job_id)
        if not job or job["status"] != JobStatus.PROCESSING:
            return False
        self._set(job, status=JobStatus.FAILED, error_message=error_message, completed_at=get_utc_now())
        return True

    async def release_job(self, job_id):
        job = self.jobs.get(job_id)
        if not job or job["status"] != JobStatus.PROCESSING:
            return False
        self._set(job, status=JobStatus.PENDING, progress=0, current_stage=None, started_at=None)
        return True

    async def requeue_stale_jobs(self, started_before):
        count = 0
        for job in self.jobs.values():
            if job["status"] == JobStatus.PROCESSING and job["started_at"] < started_before:
                self._set(job, status=JobStatus.PENDING, progress=0, current_stage=None, started_at=None)
                count += 1
        return count

    async def get_job_status(self, job_id):
        job = self.jobs.get(job_id)
        if not job:
            return None
        return {
            "job_id": job["_id"],
            "status": job["status"],
            "progress": job["progress"],
            "current_stage": job["current_stage"]
        }


class InMemorySubmissionRepository:
    """Submission store backed by a dict."""

    def __init__(self, submissions=None, error=None):
        self.submissions = dict(submissions or {})
        self.error = error
        self.completed = []

    async def get_submission(self, submission_ref):
        if self.error is not None:
            raise self.error
        return self.submissions.get(submission_ref)

    async def mark_completed(self, submission_ref):
        self.completed.append(submission_ref)
        return True


class ScriptedGenerator(ContentGenerator):
    """Generator that succeeds or fails per report type."""

    model_name = "test-model"

    def __init__(self, failing=(), on_generate=None):
        self.failing = set(failing)
        self.on_generate = on_generate
        self.calls = []

    async def generate(self, spec, submission):
        self.calls.append(spec.report_type)
        if self.on_generate is not None:
            self.on_generate(spec)
        if spec.report_type in self.failing:
            raise ArtifactGenerationError(spec.report_type, "model unavailable")
        return GeneratedArtifact(
            report_type=spec.report_type,
            title=spec.title,
            content=f"<html><body>{spec.title}</body></html>",
            generated_at=get_utc_now(),
            page_count=1,
            sections=spec.sections,
            tokens_used=100
        )


def make_job(job_id="job_test123", status=JobStatus.PENDING, created_at=None, **overrides):
    job = {
        "_id": job_id,
        "user_id": "user_001",
        "submission_ref": "sub_001",
        "variant": None,
        "status": status,
        "progress": 0,
        "current_stage": None,
        "error_message": None,
        "manifest": None,
        "created_at": created_at or datetime(2024, 2, 4, 10, 30, tzinfo=timezone.utc),
        "updated_at": created_at or datetime(2024, 2, 4, 10, 30, tzinfo=timezone.utc),
        "started_at": None,
        "completed_at": None
    }
    job.update(overrides)
    return job


@pytest.fixture
def mock_mongo_db():
    """Create mock MongoDB database."""
    db = MagicMock()

    # Mock collections
    db.pipeline_queue = MagicMock()
    db.questionnaires = MagicMock()
    db.reports = MagicMock()

    # Mock common operations
    db.pipeline_queue.find_one = AsyncMock()
    db.pipeline_queue.insert_one = AsyncMock()
    db.pipeline_queue.update_one = AsyncMock()
    db.pipeline_queue.update_many = AsyncMock()
    db.pipeline_queue.find_one_and_update = AsyncMock()
    db.pipeline_queue.find = MagicMock()

    db.questionnaires.find_one = AsyncMock()
    db.questionnaires.count_documents = AsyncMock(return_value=0)
    db.questionnaires.update_one = AsyncMock()

    db.reports.find_one_and_update = AsyncMock()

    return db


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def sample_job():
    """Create sample pending job data."""
    return make_job()


@pytest.fixture
def sample_submission():
    """Create sample questionnaire submission."""
    return {
        "_id": "sub_001",
        "user_id": "user_001",
        "status": "submitted",
        "company_profile": {"company_name": "Acme Widgets", "industry": "Manufacturing"},
        "responses": {"q1": "We plan quarterly", "q2": 4},
        "category_data": {
            "STR": {"score": 62, "summary": "Planning is informal"},
            "FIN": {"score": 71, "summary": "Healthy margins"},
            "HRS": {"score": 55, "summary": "High turnover"}
        }
    }


@pytest.fixture
def three_specs():
    """Three report specs A, B, C in order."""
    return (
        ReportSpec(report_type="report_a", title="Report A", category_focus=("STR",), sections=("One",)),
        ReportSpec(report_type="report_b", title="Report B", category_focus=("FIN",), sections=("Two",)),
        ReportSpec(report_type="report_c", title="Report C", category_focus=("HRS",), sections=("Three",)),
    )


@pytest.fixture
def job_repo(sample_job):
    """In-memory job store holding the sample job."""
    return InMemoryJobRepository([sample_job])


@pytest.fixture
def submission_repo(sample_submission):
    """In-memory submission store holding the sample submission."""
    return InMemorySubmissionRepository({sample_submission["_id"]: sample_submission})


@pytest.fixture
def generator():
    """Generator that always succeeds."""
    return ScriptedGenerator()


@pytest.fixture
def persister(tmp_path):
    """Persister writing under a temporary directory."""
    return ArtifactPersister(str(tmp_path / "output"))


@pytest.fixture
def tracker(job_repo, mock_redis_client):
    """Progress tracker over the in-memory job store."""
    return ProgressTracker(job_repo, mock_redis_client, channel="test_updates")


@pytest.fixture
def stop_event():
    """Shutdown event shared by executor and poller."""
    return asyncio.Event()


@pytest.fixture
def executor(generator, persister, tracker, submission_repo, three_specs, stop_event):
    """Pipeline executor over three specs with no inter-stage delay."""
    return PipelineExecutor(
        generator=generator,
        persister=persister,
        tracker=tracker,
        submission_repo=submission_repo,
        specs=three_specs,
        inter_stage_delay=0,
        stop_event=stop_event
    )


@pytest.fixture
def poller(job_repo, executor, tracker, stop_event):
    """Job poller wired to the in-memory stores."""
    return JobPoller(
        job_repo=job_repo,
        state_machine=JobStateMachine(job_repo, tracker),
        executor=executor,
        tracker=tracker,
        worker_id="worker-test",
        poll_interval=0.01,
        claim_timeout=3600,
        stop_event=stop_event
    )


def stale_time(seconds=7200):
    """A timestamp older than the default claim timeout."""
    return get_utc_now() - timedelta(seconds=seconds)
