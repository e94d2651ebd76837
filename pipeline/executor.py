"""Runs the ordered report stages for one job."""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo.errors import PyMongoError

from database.repositories.submission_repo import SubmissionRepository
from pipeline.generator import ContentGenerator
from pipeline.models import Manifest, ReportSpec, StageResult
from pipeline.persister import ArtifactPersister
from pipeline.progress import ProgressTracker
from pipeline.report_specs import get_report_specs
from pipeline.templates import get_company_name
from shared.exceptions import (
    ArtifactGenerationError,
    ConfigurationError,
    FatalJobError,
    ShutdownRequested,
    StageError
)
from shared.utils import calculate_progress, get_utc_now

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """
    Fans a job out over a fixed, ordered list of report specs.

    Stages run one after another. A stage that fails to generate or store
    its report is recorded as a failed StageResult and the next stage runs;
    only an unreadable submission stops the job before any stage starts.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        persister: ArtifactPersister,
        tracker: ProgressTracker,
        submission_repo: SubmissionRepository,
        specs: Sequence[ReportSpec],
        inter_stage_delay: float = 2.0,
        stop_event: Optional[asyncio.Event] = None
    ):
        self.generator = generator
        self.persister = persister
        self.tracker = tracker
        self.submission_repo = submission_repo
        self.specs = tuple(specs)
        self.inter_stage_delay = inter_stage_delay
        self.stop_event = stop_event

    async def execute(self, job: Dict[str, Any]) -> Manifest:
        """Resolve the job's submission, run every stage and record the manifest."""
        specs = self.specs_for(job)
        submission = await self.resolve_submission(job)

        company = get_company_name(submission)
        logger.info(f"Generating {len(specs)} reports for {company} (job {job['_id']})")

        results = await self.run(job, submission, specs)
        manifest = self.build_manifest(job, results)

        try:
            path = await self.persister.write_manifest(manifest)
            logger.info(f"Manifest for job {job['_id']} written to {path}")
        except OSError as e:
            logger.error(f"Could not write manifest file for job {job['_id']}: {e}")

        try:
            await self.submission_repo.mark_completed(job["submission_ref"])
        except PyMongoError as e:
            logger.warning(f"Could not mark submission {job['submission_ref']} completed: {e}")

        return manifest

    def specs_for(self, job: Dict[str, Any]) -> Tuple[ReportSpec, ...]:
        """Report catalogue for a job: its own variant, else the worker default."""
        variant = job.get("variant")
        if not variant:
            return self.specs
        try:
            return get_report_specs(variant)
        except ConfigurationError as e:
            raise FatalJobError(job["_id"], str(e)) from e

    async def resolve_submission(self, job: Dict[str, Any]) -> Dict[str, Any]:
        """Fetch the submission data; any failure here is fatal for the job."""
        submission_ref = job["submission_ref"]
        try:
            submission = await self.submission_repo.get_submission(submission_ref)
        except PyMongoError as e:
            raise FatalJobError(job["_id"], f"Failed to fetch submission {submission_ref}: {e}") from e

        if not submission:
            raise FatalJobError(job["_id"], f"Failed to fetch submission {submission_ref}: Not found")
        return submission

    async def run(
        self,
        job: Dict[str, Any],
        submission: Dict[str, Any],
        specs: Optional[Sequence[ReportSpec]] = None
    ) -> List[StageResult]:
        """Run every stage in order and return one result per spec."""
        job_id = job["_id"]
        specs = self.specs if specs is None else tuple(specs)
        total = len(specs)
        results: List[StageResult] = []

        for index, spec in enumerate(specs):
            if index > 0:
                await self._pause()
            self._check_stop()

            progress = calculate_progress(index + 1, total)
            logger.info(f"Job {job_id}: generating report {index + 1}/{total}: {spec.title}")
            await self.tracker.update(job_id, progress, spec.title)

            result = await self.run_stage(job, spec, submission)
            results.append(result)

        failed = [r.report_type for r in results if not r.ok]
        if failed:
            logger.warning(f"Job {job_id}: {len(failed)} of {total} reports failed: {', '.join(failed)}")
        return results

    async def run_stage(
        self,
        job: Dict[str, Any],
        spec: ReportSpec,
        submission: Dict[str, Any]
    ) -> StageResult:
        """Generate and store one report."""
        try:
            artifact = await self.generator.generate(spec, submission)
            entry = await self.persister.persist(job, artifact)
        except StageError as e:
            logger.error(f"Job {job['_id']}: failed to generate {spec.title}: {e.message}")
            return StageResult.failure(spec, e)
        except ShutdownRequested:
            raise
        except Exception as e:
            logger.exception(f"Job {job['_id']}: unexpected error generating {spec.title}: {e}")
            error = ArtifactGenerationError(spec.report_type, str(e) or e.__class__.__name__, e)
            return StageResult.failure(spec, error)

        logger.info(f"Job {job['_id']}: generated and saved {spec.title} ({entry.page_count} pages)")
        return StageResult.success(spec, entry)

    def build_manifest(self, job: Dict[str, Any], results: Sequence[StageResult]) -> Manifest:
        """Collect the successful stages, in spec order, into a manifest."""
        manifest = Manifest(
            job_id=job["_id"],
            submission_ref=job["submission_ref"],
            model_used=getattr(self.generator, "model_name", None)
        )
        for result in results:
            if result.ok:
                manifest.add(result.entry)
        manifest.processed_at = get_utc_now()
        return manifest

    def _check_stop(self):
        if self.stop_event is not None and self.stop_event.is_set():
            raise ShutdownRequested("Stop requested between report stages")

    async def _pause(self):
        """Inter-stage delay; returns early if a stop is requested."""
        if self.inter_stage_delay <= 0:
            return
        if self.stop_event is None:
            await asyncio.sleep(self.inter_stage_delay)
            return
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=self.inter_stage_delay)
        except asyncio.TimeoutError:
            pass
