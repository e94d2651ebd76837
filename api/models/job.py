"""Job model definitions."""
from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class JobStatusEnum(str, Enum):
    """Job status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobModel(BaseModel):
    """Job model for database representation."""
    id: str = Field(alias="_id")
    user_id: Optional[str] = None
    submission_ref: str
    variant: Optional[str] = None
    status: JobStatusEnum
    progress: int = Field(default=0, ge=0, le=100)
    current_stage: Optional[str] = None
    error_message: Optional[str] = None
    manifest: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
