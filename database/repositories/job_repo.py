"""Job repository for the pipeline_queue collection."""
from typing import Optional, List, Dict, Any
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from shared.utils import generate_job_id, get_utc_now


class JobStatus:
    """Job status constants."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, PROCESSING, COMPLETED, FAILED)
    TERMINAL = (COMPLETED, FAILED)


class JobRepository:
    """Repository for queued pipeline jobs.

    Every state-changing write is conditional on the current status so that
    concurrent writers cannot double-claim a job or overwrite a terminal one.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.pipeline_queue

    async def create_job(
        self,
        submission_ref: str,
        user_id: Optional[str] = None,
        variant: Optional[str] = None
    ) -> Dict[str, Any]:
        """Enqueue a new pending job."""
        now = get_utc_now()

        job = {
            "_id": generate_job_id(),
            "user_id": user_id,
            "submission_ref": submission_ref,
            "variant": variant,
            "status": JobStatus.PENDING,
            "progress": 0,
            "current_stage": None,
            "error_message": None,
            "manifest": None,
            "created_at": now,
            "updated_at": now,
            "started_at": None,
            "completed_at": None
        }

        await self.collection.insert_one(job)
        return job

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a job by ID."""
        return await self.collection.find_one({"_id": job_id})

    async def find_oldest_pending(self) -> Optional[Dict[str, Any]]:
        """Return the oldest pending job, if any."""
        return await self.collection.find_one(
            {"status": JobStatus.PENDING},
            sort=[("created_at", 1)]
        )

    async def claim_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Move a job from pending to processing.

        Returns the claimed job, or None when the job was no longer pending
        at write time (another worker got there first).
        """
        now = get_utc_now()
        return await self.collection.find_one_and_update(
            {"_id": job_id, "status": JobStatus.PENDING},
            {
                "$set": {
                    "status": JobStatus.PROCESSING,
                    "progress": 0,
                    "current_stage": None,
                    "started_at": now,
                    "updated_at": now
                }
            },
            return_document=ReturnDocument.AFTER
        )

    async def update_progress(
        self,
        job_id: str,
        progress: int,
        current_stage: Optional[str]
    ) -> bool:
        """Record progress for a processing job. Never lowers stored progress."""
        result = await self.collection.update_one(
            {
                "_id": job_id,
                "status": JobStatus.PROCESSING,
                "progress": {"$lte": progress}
            },
            {
                "$set": {
                    "progress": progress,
                    "current_stage": current_stage,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0

    async def complete_job(
        self,
        job_id: str,
        manifest: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Mark a processing job as completed."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.PROCESSING},
            {
                "$set": {
                    "status": JobStatus.COMPLETED,
                    "progress": 100,
                    "current_stage": None,
                    "manifest": manifest,
                    "updated_at": now,
                    "completed_at": now
                }
            }
        )
        return result.modified_count > 0

    async def fail_job(self, job_id: str, error_message: str) -> bool:
        """Mark a processing job as failed."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.PROCESSING},
            {
                "$set": {
                    "status": JobStatus.FAILED,
                    "error_message": error_message,
                    "updated_at": now,
                    "completed_at": now
                }
            }
        )
        return result.modified_count > 0

    async def release_job(self, job_id: str) -> bool:
        """Return a processing job to the queue."""
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.PROCESSING},
            {
                "$set": {
                    "status": JobStatus.PENDING,
                    "progress": 0,
                    "current_stage": None,
                    "started_at": None,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0

    async def requeue_stale_jobs(self, started_before: datetime) -> int:
        """Return jobs stuck in processing since before `started_before` to pending."""
        result = await self.collection.update_many(
            {
                "status": JobStatus.PROCESSING,
                "started_at": {"$lt": started_before}
            },
            {
                "$set": {
                    "status": JobStatus.PENDING,
                    "progress": 0,
                    "current_stage": None,
                    "started_at": None,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count

    async def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get job status information."""
        job = await self.get_job(job_id)
        if not job:
            return None

        return {
            "job_id": job["_id"],
            "submission_ref": job["submission_ref"],
            "status": job["status"],
            "progress": job.get("progress", 0),
            "current_stage": job.get("current_stage"),
            "error_message": job.get("error_message"),
            "created_at": job["created_at"],
            "started_at": job.get("started_at"),
            "completed_at": job.get("completed_at")
        }

    async def list_jobs(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """List jobs with optional status filter."""
        query = {}
        if status:
            query["status"] = status

        cursor = self.collection.find(query).sort("created_at", -1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def count_by_status(self) -> Dict[str, int]:
        """Number of jobs in each status."""
        counts = {status: 0 for status in JobStatus.ALL}
        pipeline = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
        async for row in self.collection.aggregate(pipeline):
            if row["_id"] in counts:
                counts[row["_id"]] = row["count"]
        return counts
