"""Report catalogue routes."""
from typing import List, Optional
from fastapi import APIRouter, HTTPException, status

from api.schemas.responses import ReportTypeResponse
from pipeline.report_specs import get_report_specs
from shared.config import settings
from shared.exceptions import ConfigurationError


router = APIRouter(prefix="/report-types", tags=["report-types"])


@router.get("/", response_model=List[ReportTypeResponse])
async def list_report_types(variant: Optional[str] = None):
    """List the reports generated, in order, for a pipeline variant."""
    try:
        specs = get_report_specs(variant or settings.pipeline_variant)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return [
        ReportTypeResponse(
            report_type=spec.report_type,
            title=spec.title,
            category_focus=list(spec.category_focus),
            sections=list(spec.sections),
            page_target=spec.page_target,
            audience=spec.audience
        )
        for spec in specs
    ]
