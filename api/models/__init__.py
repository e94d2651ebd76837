# Models module
from .job import JobModel, JobStatusEnum

__all__ = ["JobModel", "JobStatusEnum"]
