"""Job domain models and the status state machine."""

from __future__ import annotations

import copy
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    """Status of a job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    DOWNLOADING = "downloading"
    UPLOADING = "uploading"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobType(str, Enum):
    """Type of job."""

    DOWNLOAD = "download"
    SUMMARIZE = "summarize"


class LogLevel(str, Enum):
    """Level of a job log entry."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    PROGRESS = "progress"


# Pipeline order; a job may only move forward along it (skips allowed).
_PIPELINE_ORDER: tuple[JobStatus, ...] = (
    JobStatus.QUEUED,
    JobStatus.PROCESSING,
    JobStatus.DOWNLOADING,
    JobStatus.UPLOADING,
    JobStatus.SUMMARIZING,
    JobStatus.COMPLETED,
)


def can_transition(current: JobStatus, new: JobStatus) -> bool:
    """Return True if ``current -> new`` is an edge of the job state machine.

    Terminal states have no outgoing edges. Any other state may fail, or
    advance to a strictly later pipeline state.
    """
    if current.is_terminal:
        return False
    if new is JobStatus.FAILED:
        return True
    return _PIPELINE_ORDER.index(new) > _PIPELINE_ORDER.index(current)


def generate_job_id() -> str:
    """Generate a job id of the form ``job_<epoch-ms>_<8 hex chars>``."""
    return f"job_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LogEntry:
    """A single line of a job's audit trail."""

    timestamp: datetime
    level: LogLevel
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "message": self.message,
        }
        if self.data is not None:
            entry["data"] = self.data
        return entry


@dataclass
class Job:
    """A trackable unit of work.

    ``logs`` is None when the in-memory copy has been released; the
    registry re-reads it from the log store on demand.
    """

    id: str = field(default_factory=generate_job_id)
    type: JobType = JobType.DOWNLOAD
    params: dict[str, Any] = field(default_factory=dict)
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
    result: dict[str, Any] | None = None
    error: str | None = None
    logs: list[LogEntry] | None = field(default_factory=list)
    log_count: int = 0

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at


@dataclass(frozen=True)
class JobSummary:
    """A job without its log body, for listings."""

    id: str
    type: JobType
    params: dict[str, Any]
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    result: dict[str, Any] | None
    error: str | None
    log_count: int

    @classmethod
    def from_job(cls, job: Job) -> JobSummary:
        return cls(
            id=job.id,
            type=job.type,
            params=dict(job.params),
            status=job.status,
            created_at=job.created_at,
            updated_at=job.updated_at or job.created_at,
            result=copy.deepcopy(job.result),
            error=job.error,
            log_count=job.log_count,
        )
