"""Job tracking for spacecast."""

from spacecast.jobs.log_store import JobLogStore
from spacecast.jobs.models import Job, JobStatus, JobSummary, JobType, LogEntry, LogLevel
from spacecast.jobs.queue import DownloadTask, WorkerQueue
from spacecast.jobs.registry import JobRegistry

__all__ = [
    "DownloadTask",
    "Job",
    "JobLogStore",
    "JobRegistry",
    "JobStatus",
    "JobSummary",
    "JobType",
    "LogEntry",
    "LogLevel",
    "WorkerQueue",
]
