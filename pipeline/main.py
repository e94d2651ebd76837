"""Main worker entry point."""
import asyncio
import logging
import os
import signal

from database.connection import DatabaseConnection
from database.repositories.job_repo import JobRepository
from database.repositories.report_repo import ReportRepository
from database.repositories.submission_repo import SubmissionRepository
from pipeline.executor import PipelineExecutor
from pipeline.generator import AnthropicContentGenerator
from pipeline.persister import ArtifactPersister
from pipeline.poller import JobPoller
from pipeline.progress import ProgressTracker
from pipeline.report_specs import get_report_specs
from pipeline.state_machine import JobStateMachine
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_poller(db, redis_client, worker_id: str) -> JobPoller:
    """Wire the worker components from settings."""
    specs = get_report_specs(settings.pipeline_variant)
    stop_event = asyncio.Event()

    job_repo = JobRepository(db)
    tracker = ProgressTracker(job_repo, redis_client)
    executor = PipelineExecutor(
        generator=AnthropicContentGenerator(),
        persister=ArtifactPersister(settings.output_dir, ReportRepository(db)),
        tracker=tracker,
        submission_repo=SubmissionRepository(db),
        specs=specs,
        inter_stage_delay=settings.inter_stage_delay,
        stop_event=stop_event
    )

    return JobPoller(
        job_repo=job_repo,
        state_machine=JobStateMachine(job_repo, tracker),
        executor=executor,
        tracker=tracker,
        worker_id=worker_id,
        stop_event=stop_event
    )


async def main():
    """Main entry point for the pipeline worker."""
    worker_id = settings.worker_id or f"worker-{os.getpid()}"

    logger.info(f"Starting pipeline worker {worker_id} (variant: {settings.pipeline_variant})")
    logger.info(f"MongoDB: {settings.mongo_url}, output directory: {settings.output_dir}")

    # Initialize database connections
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    poller = build_poller(db, redis_client, worker_id)

    # Setup signal handlers for graceful shutdown
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(poller.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await poller.start()
    except Exception as e:
        logger.error(f"Worker error: {e}")
        raise
    finally:
        await DatabaseConnection.close_connections()
        logger.info("Worker shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
