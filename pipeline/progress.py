"""Progress tracking for jobs that are being processed."""
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from pymongo.errors import PyMongoError

from database.repositories.job_repo import JobRepository, JobStatus
from shared.config import settings

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Writes job progress to the job store and publishes it for live viewers."""

    def __init__(
        self,
        job_repo: JobRepository,
        redis_client: Optional[redis.Redis] = None,
        channel: str = None
    ):
        self.job_repo = job_repo
        self.redis = redis_client
        self.channel = channel or settings.redis_progress_channel
        self._last_progress: Dict[str, int] = {}

    async def update(self, job_id: str, progress: int, current_stage: Optional[str]) -> bool:
        """
        Record `(progress, current_stage)` for a job.

        A value lower than the last one recorded for the job is dropped. A job
        store error is logged and the update skipped; the next stage's update
        carries a higher value anyway. Returns True if the update was written.
        """
        progress = max(0, min(100, int(progress)))
        last = self._last_progress.get(job_id)
        if last is not None and progress < last:
            logger.warning(f"Ignoring progress regression for job {job_id}: {last} -> {progress}")
            return False

        self._last_progress[job_id] = progress
        try:
            await self.job_repo.update_progress(job_id, progress, current_stage)
        except PyMongoError as e:
            logger.warning(f"Could not record progress {progress} for job {job_id}: {e}")
            return False

        await self._publish({
            "type": "job_progress",
            "job_id": job_id,
            "status": JobStatus.PROCESSING,
            "progress": progress,
            "current_stage": current_stage
        })
        return True

    async def publish_status(
        self,
        job_id: str,
        status: str,
        progress: Optional[int] = None,
        error_message: Optional[str] = None
    ):
        """Publish a job lifecycle change."""
        await self._publish({
            "type": "job_update",
            "job_id": job_id,
            "status": status,
            "progress": progress,
            "current_stage": None,
            "error_message": error_message
        })

    async def get_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Current status, progress and stage for a job."""
        return await self.job_repo.get_job_status(job_id)

    def finish(self, job_id: str):
        """Forget per-job state once the job has left processing."""
        self._last_progress.pop(job_id, None)

    async def _publish(self, update: Dict[str, Any]):
        if self.redis is None:
            return
        try:
            await self.redis.publish(self.channel, json.dumps(update))
        except redis.RedisError as e:
            logger.warning(f"Could not publish update for job {update['job_id']}: {e}")
