"""Submission repository for the questionnaires collection."""
from typing import Optional, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from shared.utils import get_utc_now


class SubmissionStatus:
    """Submission status constants."""
    SUBMITTED = "submitted"
    COMPLETED = "completed"


class SubmissionRepository:
    """Read access to assessment submissions."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.questionnaires

    async def get_submission(self, submission_ref: str) -> Optional[Dict[str, Any]]:
        """Get a submission by ID."""
        return await self.collection.find_one({"_id": submission_ref})

    async def submission_exists(self, submission_ref: str) -> bool:
        """Check if a submission with the given ID exists."""
        count = await self.collection.count_documents({"_id": submission_ref})
        return count > 0

    async def mark_completed(self, submission_ref: str) -> bool:
        """Flag the submission as fully processed."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": submission_ref},
            {
                "$set": {
                    "status": SubmissionStatus.COMPLETED,
                    "completed_at": now
                }
            }
        )
        return result.modified_count > 0
