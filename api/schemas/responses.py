"""Response schemas for API endpoints."""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class JobSubmitResponse(BaseModel):
    """Response schema for job submission."""
    job_id: str = Field(..., description="Unique job identifier")
    status: str = Field(..., description="Current job status")
    submission_ref: str = Field(..., description="Submission the job will process")
    message: str = Field(default="Job queued successfully")


class JobStatusResponse(BaseModel):
    """Response schema for job status."""
    job_id: str = Field(..., description="Unique job identifier")
    submission_ref: str = Field(..., description="Submission being processed")
    status: str = Field(..., description="Current job status")
    progress: int = Field(..., ge=0, le=100, description="Completion percentage")
    current_stage: Optional[str] = Field(None, description="Report currently being generated")
    error_message: Optional[str] = Field(None, description="Reason the job failed")
    created_at: datetime = Field(..., description="Job creation timestamp")
    started_at: Optional[datetime] = Field(None, description="Claim timestamp")
    completed_at: Optional[datetime] = Field(None, description="Terminal transition timestamp")


class ManifestReport(BaseModel):
    """One produced report in a manifest."""
    reportType: str
    title: str
    pageCount: int
    generatedAt: Optional[str] = None


class ManifestMetadata(BaseModel):
    """Aggregate totals for a manifest."""
    processedAt: Optional[str] = None
    totalArtifacts: int
    totalPages: int
    modelUsed: Optional[str] = None
    tokensUsed: int = 0


class ManifestResponse(BaseModel):
    """Response schema for a completed job's manifest."""
    jobId: str
    submissionId: str
    reports: List[ManifestReport] = Field(default_factory=list)
    metadata: ManifestMetadata


class ReportTypeResponse(BaseModel):
    """Response schema for a configured report type."""
    report_type: str
    title: str
    category_focus: List[str]
    sections: List[str]
    page_target: str
    audience: str
