"""Shared utility functions."""
import math
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_job_id() -> str:
    """Generate a unique job ID."""
    return f"job_{uuid.uuid4().hex[:12]}"


def generate_report_id() -> str:
    """Generate a unique report ID."""
    return f"rpt_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime to ISO format string."""
    if dt is None:
        return None
    return dt.isoformat()


def calculate_progress(completed: int, total: int) -> int:
    """Percentage of `completed` out of `total`, rounded half up."""
    if total <= 0:
        return 100
    return min(100, math.floor(completed * 100 / total + 0.5))


def estimate_page_count(content: str, chars_per_page: int = 3000) -> int:
    """Rough printed page estimate for an HTML document."""
    return math.ceil(len(content) / chars_per_page)
