"""Request schemas for API endpoints."""
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from pipeline.report_specs import VARIANTS


class JobSubmitRequest(BaseModel):
    """Request schema for enqueuing a report generation job."""
    submission_ref: str = Field(..., min_length=1, description="ID of the questionnaire submission")
    user_id: Optional[str] = Field(default=None, description="Owner of the submission")
    variant: Optional[str] = Field(default=None, description="Report catalogue (essentials or full)")

    @field_validator('variant')
    @classmethod
    def validate_variant(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the variant is a known report catalogue."""
        if v is not None and v not in VARIANTS:
            raise ValueError(f"Unknown variant; expected one of {sorted(VARIANTS)}")
        return v
