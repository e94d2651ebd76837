"""Lifecycle transitions for a single job."""
import logging
from typing import Any, Dict, Optional

from database.repositories.job_repo import JobRepository, JobStatus
from pipeline.models import Manifest
from pipeline.progress import ProgressTracker
from shared.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)

TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING},
    # processing -> pending only for releasing an interrupted job
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.PENDING},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def can_transition(current: str, target: str) -> bool:
    """Check whether a job may move from `current` to `target`."""
    return target in TRANSITIONS.get(current, set())


class JobStateMachine:
    """Validates job transitions and applies them through the job store."""

    def __init__(self, job_repo: JobRepository, tracker: Optional[ProgressTracker] = None):
        self.job_repo = job_repo
        self.tracker = tracker

    def _check(self, job: Dict[str, Any], target: str):
        current = job["status"]
        if not can_transition(current, target):
            raise InvalidTransitionError(job["_id"], current, target)

    async def claim(self, job: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Claim a pending job.

        Returns the job as stored after the claim, or None when another
        worker claimed it first.
        """
        self._check(job, JobStatus.PROCESSING)
        claimed = await self.job_repo.claim_job(job["_id"])
        if claimed is None:
            logger.info(f"Job {job['_id']} was claimed by another worker")
            return None

        if self.tracker:
            await self.tracker.publish_status(claimed["_id"], JobStatus.PROCESSING, progress=0)
        return claimed

    async def complete(self, job: Dict[str, Any], manifest: Manifest) -> bool:
        """Mark a processing job as completed with its manifest."""
        self._check(job, JobStatus.COMPLETED)
        updated = await self.job_repo.complete_job(job["_id"], manifest.to_dict())
        if not updated:
            logger.warning(f"Job {job['_id']} was no longer processing; completion not recorded")
            return False

        job["status"] = JobStatus.COMPLETED
        job["progress"] = 100
        job["current_stage"] = None
        if self.tracker:
            await self.tracker.publish_status(job["_id"], JobStatus.COMPLETED, progress=100)
        return True

    async def fail(self, job: Dict[str, Any], error_message: str) -> bool:
        """Mark a processing job as failed."""
        self._check(job, JobStatus.FAILED)
        updated = await self.job_repo.fail_job(job["_id"], error_message)
        if not updated:
            logger.warning(f"Job {job['_id']} was no longer processing; failure not recorded")
            return False

        job["status"] = JobStatus.FAILED
        job["error_message"] = error_message
        if self.tracker:
            await self.tracker.publish_status(
                job["_id"], JobStatus.FAILED, error_message=error_message
            )
        return True

    async def release(self, job: Dict[str, Any]) -> bool:
        """Put an interrupted job back in the queue."""
        self._check(job, JobStatus.PENDING)
        updated = await self.job_repo.release_job(job["_id"])
        if updated:
            job["status"] = JobStatus.PENDING
            job["progress"] = 0
            if self.tracker:
                await self.tracker.publish_status(job["_id"], JobStatus.PENDING, progress=0)
        return updated
