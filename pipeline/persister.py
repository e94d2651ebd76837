"""Durable storage for generated reports and job manifests."""
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

from database.repositories.report_repo import ReportRepository
from pipeline.models import GeneratedArtifact, Manifest, ManifestEntry
from shared.exceptions import ArtifactPersistenceError

logger = logging.getLogger(__name__)


class ArtifactPersister:
    """Writes report files under a per-job directory and records report rows."""

    def __init__(self, output_dir: str, report_repo: Optional[ReportRepository] = None):
        self.output_dir = Path(output_dir)
        self.report_repo = report_repo

    def job_dir(self, job_id: str) -> Path:
        return self.output_dir / job_id

    def report_path(self, job_id: str, report_type: str) -> Path:
        return self.job_dir(job_id) / "reports" / f"{report_type}.html"

    def manifest_path(self, job_id: str) -> Path:
        return self.job_dir(job_id) / "manifest.json"

    async def persist(self, job: Dict[str, Any], artifact: GeneratedArtifact) -> ManifestEntry:
        """
        Store one artifact and return its manifest entry.

        Persisting the same report type for the same job again overwrites the
        file and the report row.
        """
        path = self.report_path(job["_id"], artifact.report_type)

        try:
            await asyncio.to_thread(_write_text, path, artifact.content)
        except OSError as e:
            raise ArtifactPersistenceError(
                artifact.report_type, f"Could not write {path}: {e}", e
            ) from e

        if self.report_repo is not None:
            try:
                await self.report_repo.upsert_report(
                    user_id=job.get("user_id"),
                    questionnaire_id=job["submission_ref"],
                    report_type=artifact.report_type,
                    title=artifact.title,
                    html_content=artifact.content,
                    page_count=artifact.page_count,
                    generated_at=artifact.generated_at
                )
            except PyMongoError as e:
                raise ArtifactPersistenceError(
                    artifact.report_type, f"Could not save report row: {e}", e
                ) from e

        logger.debug(f"Stored {artifact.report_type} for job {job['_id']} at {path}")

        return ManifestEntry(
            report_type=artifact.report_type,
            title=artifact.title,
            page_count=artifact.page_count,
            generated_at=artifact.generated_at,
            tokens_used=artifact.tokens_used
        )

    async def write_manifest(self, manifest: Manifest) -> Path:
        """Write the manifest document for a job."""
        path = self.manifest_path(manifest.job_id)
        payload = json.dumps(manifest.to_dict(), indent=2)
        await asyncio.to_thread(_write_text, path, payload)
        return path


def _write_text(path: Path, content: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
