"""Job routes for the REST API."""
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
import redis.asyncio as redis

from database.connection import get_db, get_redis
from database.repositories.job_repo import JobRepository, JobStatus
from database.repositories.submission_repo import SubmissionRepository
from pipeline.progress import ProgressTracker
from api.models import JobModel, JobStatusEnum
from api.schemas.requests import JobSubmitRequest
from api.schemas.responses import (
    JobSubmitResponse,
    JobStatusResponse,
    ManifestResponse
)
from shared.config import settings


router = APIRouter(prefix="/jobs", tags=["jobs"])


def _status_response(job: JobModel) -> JobStatusResponse:
    return JobStatusResponse(
        job_id=job.id,
        submission_ref=job.submission_ref,
        status=job.status.value,
        progress=job.progress,
        current_stage=job.current_stage,
        error_message=job.error_message,
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at
    )


async def _get_job_or_404(job_repo: JobRepository, job_id: str) -> JobModel:
    job = await job_repo.get_job(job_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )
    return JobModel.model_validate(job)


@router.post("/submit", response_model=JobSubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_job(
    request: JobSubmitRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
):
    """
    Queue report generation for a submission.

    - Validates that the submission exists
    - Creates a pending job record
    - Publishes the job creation event
    """
    job_repo = JobRepository(db)
    submission_repo = SubmissionRepository(db)

    if not await submission_repo.submission_exists(request.submission_ref):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Submission {request.submission_ref} not found"
        )

    job = await job_repo.create_job(
        submission_ref=request.submission_ref,
        user_id=request.user_id,
        variant=request.variant or settings.pipeline_variant
    )

    tracker = ProgressTracker(job_repo, redis_client)
    await tracker.publish_status(job["_id"], JobStatus.PENDING, progress=0)

    return JobSubmitResponse(
        job_id=job["_id"],
        status=job["status"],
        submission_ref=job["submission_ref"]
    )


@router.get("/{job_id}/status", response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Get the current status, progress and stage of a job."""
    job = await _get_job_or_404(JobRepository(db), job_id)
    return _status_response(job)


@router.get("/{job_id}/manifest", response_model=ManifestResponse)
async def get_job_manifest(
    job_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Get the manifest of reports a completed job produced."""
    job = await _get_job_or_404(JobRepository(db), job_id)

    if job.status != JobStatusEnum.COMPLETED or job.manifest is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Job {job_id} has no manifest (status {job.status.value})"
        )

    return ManifestResponse(**job.manifest)


@router.get("/", response_model=List[JobStatusResponse])
async def list_jobs(
    status_filter: Optional[JobStatusEnum] = None,
    limit: int = 50,
    skip: int = 0,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """List jobs with optional status filter."""
    job_repo = JobRepository(db)

    jobs = await job_repo.list_jobs(
        status=status_filter.value if status_filter else None,
        limit=limit,
        skip=skip
    )

    return [_status_response(JobModel.model_validate(job)) for job in jobs]
