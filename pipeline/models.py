"""Value types passed between pipeline stages."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from shared.exceptions import StageError
from shared.utils import format_datetime


@dataclass(frozen=True)
class ReportSpec:
    """Static description of one report to produce."""
    report_type: str
    title: str
    category_focus: Tuple[str, ...] = ()
    sections: Tuple[str, ...] = ()
    page_target: str = "15-25"
    audience: str = "Management/Leadership"


@dataclass
class GeneratedArtifact:
    """Output of one successful generation stage."""
    report_type: str
    title: str
    content: str
    generated_at: datetime
    page_count: int
    sections: Tuple[str, ...] = ()
    tokens_used: int = 0


@dataclass(frozen=True)
class ManifestEntry:
    """One produced report as recorded in the manifest."""
    report_type: str
    title: str
    page_count: int
    generated_at: datetime
    tokens_used: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reportType": self.report_type,
            "title": self.title,
            "pageCount": self.page_count,
            "generatedAt": format_datetime(self.generated_at)
        }


@dataclass
class StageResult:
    """Outcome of a single stage: either a manifest entry or an isolated error."""
    report_type: str
    title: str
    entry: Optional[ManifestEntry] = None
    error: Optional[StageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, spec: ReportSpec, entry: ManifestEntry) -> "StageResult":
        return cls(report_type=spec.report_type, title=spec.title, entry=entry)

    @classmethod
    def failure(cls, spec: ReportSpec, error: StageError) -> "StageResult":
        return cls(report_type=spec.report_type, title=spec.title, error=error)


@dataclass
class Manifest:
    """Summary of the reports a job actually produced."""
    job_id: str
    submission_ref: str
    model_used: Optional[str] = None
    entries: List[ManifestEntry] = field(default_factory=list)
    processed_at: Optional[datetime] = None

    def add(self, entry: ManifestEntry):
        """Append an entry, replacing any earlier entry for the same report type."""
        for index, existing in enumerate(self.entries):
            if existing.report_type == entry.report_type:
                self.entries[index] = entry
                return
        self.entries.append(entry)

    @property
    def report_types(self) -> List[str]:
        return [entry.report_type for entry in self.entries]

    @property
    def total_pages(self) -> int:
        return sum(entry.page_count for entry in self.entries)

    @property
    def tokens_used(self) -> int:
        return sum(entry.tokens_used for entry in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "submissionId": self.submission_ref,
            "reports": [entry.to_dict() for entry in self.entries],
            "metadata": {
                "processedAt": format_datetime(self.processed_at),
                "totalArtifacts": len(self.entries),
                "totalPages": self.total_pages,
                "modelUsed": self.model_used,
                "tokensUsed": self.tokens_used
            }
        }
