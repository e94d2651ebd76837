# Routes module
from .jobs import router as jobs_router
from .report_types import router as report_types_router

__all__ = ["jobs_router", "report_types_router"]
