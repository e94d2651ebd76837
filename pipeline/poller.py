"""Polling worker that claims queued jobs and runs them one at a time."""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

from database.repositories.job_repo import JobRepository
from pipeline.executor import PipelineExecutor
from pipeline.progress import ProgressTracker
from pipeline.state_machine import JobStateMachine
from shared.config import settings
from shared.exceptions import FatalJobError, PollError, ShutdownRequested
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


class JobPoller:
    """Worker loop over the pipeline queue."""

    def __init__(
        self,
        job_repo: JobRepository,
        state_machine: JobStateMachine,
        executor: PipelineExecutor,
        tracker: ProgressTracker,
        worker_id: str = "worker-1",
        poll_interval: float = None,
        claim_timeout: int = None,
        stop_event: Optional[asyncio.Event] = None
    ):
        self.job_repo = job_repo
        self.state_machine = state_machine
        self.executor = executor
        self.tracker = tracker
        self.worker_id = worker_id
        self.poll_interval = settings.poll_interval if poll_interval is None else poll_interval
        self.claim_timeout = settings.claim_timeout if claim_timeout is None else claim_timeout
        self.stop_event = stop_event or asyncio.Event()
        self.running = True

    async def start(self):
        """Start the worker loop: recover orphans, poll now, then on every interval."""
        logger.info(f"Worker {self.worker_id} starting, polling every {self.poll_interval}s...")

        await self.recover_orphaned_jobs()

        while self.running:
            try:
                await self.poll_once()
            except Exception as e:
                logger.exception(f"Error in poll cycle: {e}")

            if not self.running:
                break
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Worker {self.worker_id} stopped")

    async def stop(self):
        """Stop the worker gracefully."""
        logger.info(f"Worker {self.worker_id} stopping...")
        self.running = False
        self.stop_event.set()

    async def recover_orphaned_jobs(self) -> int:
        """Requeue jobs left in processing by a worker that died."""
        cutoff = get_utc_now() - timedelta(seconds=self.claim_timeout)
        try:
            count = await self.job_repo.requeue_stale_jobs(cutoff)
        except PyMongoError as e:
            logger.error(f"Could not requeue orphaned jobs: {e}")
            return 0
        if count:
            logger.warning(f"Requeued {count} orphaned job(s) started before {cutoff.isoformat()}")
        return count

    async def poll_once(self) -> Optional[str]:
        """
        Run one poll cycle.

        Returns the ID of the job that was processed, or None if nothing was
        claimed. Store errors while polling are logged and the cycle skipped.
        """
        try:
            job = await self._next_pending()
        except PollError as e:
            logger.error(f"Error polling for jobs: {e}")
            return None

        if not job:
            return None

        try:
            claimed = await self.state_machine.claim(job)
        except PyMongoError as e:
            logger.error(f"Could not claim job {job['_id']}: {e}")
            return None
        if claimed is None:
            return None

        await self.process_job(claimed)
        return claimed["_id"]

    async def _next_pending(self) -> Optional[Dict[str, Any]]:
        try:
            return await self.job_repo.find_oldest_pending()
        except PyMongoError as e:
            raise PollError(str(e)) from e

    async def process_job(self, job: Dict[str, Any]):
        """Drive a claimed job to a terminal state."""
        job_id = job["_id"]
        logger.info(f"Processing job {job_id} for user {job.get('user_id')}")

        try:
            manifest = await self.executor.execute(job)
            await self.state_machine.complete(job, manifest)
            logger.info(f"Job {job_id} completed with {len(manifest.entries)} reports")
        except FatalJobError as e:
            logger.error(f"Job {job_id} failed: {e.message}")
            await self._fail(job, e.message)
        except ShutdownRequested:
            logger.warning(f"Job {job_id} interrupted by shutdown, returning it to the queue")
            await self.state_machine.release(job)
        except PyMongoError as e:
            logger.error(f"Job {job_id} failed on job store error: {e}")
            await self._fail(job, f"Job store error: {e}")
        except Exception as e:
            logger.exception(f"Job {job_id} failed: {e}")
            await self._fail(job, str(e) or e.__class__.__name__)
        finally:
            self.tracker.finish(job_id)

    async def _fail(self, job: Dict[str, Any], message: str):
        try:
            await self.state_machine.fail(job, message)
        except PyMongoError as e:
            logger.error(f"Could not record failure for job {job['_id']}: {e}")
