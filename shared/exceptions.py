"""Error taxonomy for the report pipeline."""
from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(PipelineError):
    """Raised when the worker is configured with unusable values."""


class FatalJobError(PipelineError):
    """Failure that makes all further work on a job impossible."""

    def __init__(self, job_id: str, message: str):
        super().__init__(message)
        self.job_id = job_id
        self.message = message


class StageError(PipelineError):
    """Failure scoped to a single report stage. The job carries on."""

    def __init__(self, report_type: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{report_type}: {message}")
        self.report_type = report_type
        self.message = message
        self.cause = cause


class ArtifactGenerationError(StageError):
    """Content generation for one report failed."""


class ArtifactPersistenceError(StageError):
    """A generated report could not be stored."""


class PollError(PipelineError):
    """The job store could not be queried during a poll cycle."""


class InvalidTransitionError(PipelineError):
    """A job was asked to move between two states that are not connected."""

    def __init__(self, job_id: str, current: str, target: str):
        super().__init__(f"Job {job_id} cannot move from {current} to {target}")
        self.job_id = job_id
        self.current = current
        self.target = target


class ShutdownRequested(PipelineError):
    """The worker was asked to stop while a job was between stages."""
