"""Artifact persister tests."""
import json
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock
from pymongo.errors import AutoReconnect

from pipeline.models import GeneratedArtifact, Manifest, ManifestEntry
from pipeline.persister import ArtifactPersister
from shared.exceptions import ArtifactPersistenceError


GENERATED_AT = datetime(2024, 2, 4, 10, 32, tzinfo=timezone.utc)


def make_artifact(report_type="owner", content="<html>owner</html>"):
    return GeneratedArtifact(
        report_type=report_type,
        title="Owner's Strategic Report",
        content=content,
        generated_at=GENERATED_AT,
        page_count=2,
        tokens_used=1500
    )


class TestArtifactPersister:
    """Tests for ArtifactPersister class."""

    @pytest.mark.asyncio
    async def test_persist_writes_report_file(self, persister, sample_job):
        """Test the report lands under the job's reports directory."""
        entry = await persister.persist(sample_job, make_artifact())

        path = persister.report_path(sample_job["_id"], "owner")
        assert path.read_text(encoding="utf-8") == "<html>owner</html>"
        assert path.parent.name == "reports"
        assert entry == ManifestEntry(
            report_type="owner",
            title="Owner's Strategic Report",
            page_count=2,
            generated_at=GENERATED_AT,
            tokens_used=1500
        )

    @pytest.mark.asyncio
    async def test_persist_overwrites(self, persister, sample_job):
        """Test persisting the same report type again replaces the file."""
        await persister.persist(sample_job, make_artifact(content="first"))
        await persister.persist(sample_job, make_artifact(content="second"))

        reports_dir = persister.job_dir(sample_job["_id"]) / "reports"
        assert [p.name for p in reports_dir.iterdir()] == ["owner.html"]
        assert (reports_dir / "owner.html").read_text(encoding="utf-8") == "second"

    @pytest.mark.asyncio
    async def test_persist_records_report_row(self, tmp_path, sample_job):
        """Test the report row is upserted with the job's submission."""
        report_repo = MagicMock()
        report_repo.upsert_report = AsyncMock()
        persister = ArtifactPersister(str(tmp_path), report_repo)

        await persister.persist(sample_job, make_artifact())

        kwargs = report_repo.upsert_report.await_args.kwargs
        assert kwargs["user_id"] == "user_001"
        assert kwargs["questionnaire_id"] == "sub_001"
        assert kwargs["report_type"] == "owner"
        assert kwargs["page_count"] == 2
        assert kwargs["generated_at"] == GENERATED_AT

    @pytest.mark.asyncio
    async def test_unwritable_output_dir(self, tmp_path, sample_job):
        """Test a file system error is raised as a persistence error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        persister = ArtifactPersister(str(blocker))

        with pytest.raises(ArtifactPersistenceError) as exc_info:
            await persister.persist(sample_job, make_artifact())

        assert exc_info.value.report_type == "owner"

    @pytest.mark.asyncio
    async def test_report_row_error(self, tmp_path, sample_job):
        """Test a database error is raised as a persistence error."""
        report_repo = MagicMock()
        report_repo.upsert_report = AsyncMock(side_effect=AutoReconnect("lost"))
        persister = ArtifactPersister(str(tmp_path), report_repo)

        with pytest.raises(ArtifactPersistenceError):
            await persister.persist(sample_job, make_artifact())

    @pytest.mark.asyncio
    async def test_write_manifest(self, persister):
        """Test the manifest document is written as JSON."""
        manifest = Manifest(
            job_id="job_test123",
            submission_ref="sub_001",
            model_used="test-model",
            processed_at=GENERATED_AT
        )
        manifest.add(ManifestEntry("owner", "Owner's Strategic Report", 2, GENERATED_AT, 1500))

        path = await persister.write_manifest(manifest)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert path == persister.manifest_path("job_test123")
        assert data["jobId"] == "job_test123"
        assert data["submissionId"] == "sub_001"
        assert data["reports"][0]["reportType"] == "owner"
        assert data["metadata"]["totalPages"] == 2
        assert data["metadata"]["tokensUsed"] == 1500
