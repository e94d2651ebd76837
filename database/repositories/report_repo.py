"""Report repository for the reports collection."""
from typing import Optional, Dict, Any
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from shared.utils import generate_report_id, get_utc_now


class ReportStatus:
    """Report status constants."""
    COMPLETED = "completed"


class ReportRepository:
    """Repository for generated report rows."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.reports

    async def upsert_report(
        self,
        user_id: Optional[str],
        questionnaire_id: str,
        report_type: str,
        title: str,
        html_content: str,
        page_count: int,
        generated_at: datetime
    ) -> Dict[str, Any]:
        """
        Store a generated report.

        Keyed by (user_id, questionnaire_id, report_type): storing the same
        report again replaces the previous body instead of adding a row.
        """
        now = get_utc_now()
        return await self.collection.find_one_and_update(
            {
                "user_id": user_id,
                "questionnaire_id": questionnaire_id,
                "report_type": report_type
            },
            {
                "$set": {
                    "title": title,
                    "status": ReportStatus.COMPLETED,
                    "html_content": html_content,
                    "page_count": page_count,
                    "generated_at": generated_at,
                    "updated_at": now
                },
                "$setOnInsert": {
                    "_id": generate_report_id(),
                    "created_at": now
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )

