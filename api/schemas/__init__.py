# Schemas module
from .requests import JobSubmitRequest
from .responses import (
    JobSubmitResponse,
    JobStatusResponse,
    ManifestReport,
    ManifestMetadata,
    ManifestResponse,
    ReportTypeResponse
)

__all__ = [
    "JobSubmitRequest",
    "JobSubmitResponse",
    "JobStatusResponse",
    "ManifestReport",
    "ManifestMetadata",
    "ManifestResponse",
    "ReportTypeResponse"
]
