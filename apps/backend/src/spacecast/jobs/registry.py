"""In-memory job registry backed by the job log store."""

from __future__ import annotations

import copy
import logging
import threading
from datetime import datetime
from typing import Any

from spacecast.errors import InvalidTransitionError
from spacecast.jobs.log_store import JobLogStore
from spacecast.jobs.models import (
    Job,
    JobStatus,
    JobSummary,
    JobType,
    LogEntry,
    LogLevel,
    can_transition,
    generate_job_id,
    utcnow,
)

logger = logging.getLogger(__name__)


class JobRegistry:
    """Owns all job records and mediates every mutation.

    Jobs live in a dict guarded by a registry-wide lock; callers only ever
    receive copies. Every change is also appended to the job's log file so
    the audit trail outlives the process. Once a job reaches a terminal
    state its in-memory log list is released and re-read from disk when
    requested.
    """

    def __init__(self, log_store: JobLogStore) -> None:
        self._jobs: dict[str, Job] = {}
        self._last_logged: dict[str, datetime] = {}
        self._lock = threading.RLock()
        self._log_store = log_store

    @property
    def log_store(self) -> JobLogStore:
        return self._log_store

    def create_job(self, job_type: JobType, params: dict[str, Any] | None = None) -> str:
        """Create a new job in the ``queued`` state.

        Args:
            job_type: Pipeline kind.
            params: Opaque request payload (e.g. the source URL).

        Returns:
            The new job id.
        """
        with self._lock:
            job_id = generate_job_id()
            while job_id in self._jobs or self._log_store.exists(job_id):
                job_id = generate_job_id()

            job = Job(id=job_id, type=job_type, params=dict(params or {}))
            self._jobs[job_id] = job
            self._log_store.init(job_id, job.created_at)
            self._append(
                job,
                f"Job created: {job_type.value}",
                LogLevel.INFO,
                {"params": job.params},
            )

        logger.info("Created %s job %s", job_type.value, job_id)
        return job_id

    def get_job(self, job_id: str) -> Job | None:
        """Return a snapshot of the job, with logs loaded, or None."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            snapshot = copy.copy(job)
            snapshot.params = dict(job.params)
            snapshot.result = copy.deepcopy(job.result)
            if job.logs is not None:
                snapshot.logs = list(job.logs)
                return snapshot

        snapshot.logs = self._log_store.read_all(job_id)
        return snapshot

    def update_job(
        self,
        job_id: str,
        status: JobStatus,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> bool:
        """Move a job to a new status.

        Returns:
            False if the job is unknown, True otherwise.

        Raises:
            InvalidTransitionError: If the state machine forbids the move,
                including any change to a completed or failed job.
            ValueError: If a result is passed with any status but completed.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False

            previous = job.status
            if not can_transition(previous, status):
                raise InvalidTransitionError(job_id, previous.value, status.value)
            if result is not None and status is not JobStatus.COMPLETED:
                raise ValueError("A job result can only be set on completion")

            job.status = status
            job.updated_at = self._now(job)
            if result is not None:
                job.result = result
            if error is not None:
                job.error = error

            level = {
                JobStatus.COMPLETED: LogLevel.SUCCESS,
                JobStatus.FAILED: LogLevel.ERROR,
            }.get(status, LogLevel.INFO)
            self._append(job, f"Status changed: {previous.value} -> {status.value}", level)
            if result is not None:
                self._append(job, "Job completed", LogLevel.SUCCESS, result)
            if error is not None:
                self._append(job, f"Error: {error}", LogLevel.ERROR)

            if status.is_terminal:
                job.logs = None

        logger.info("Job %s: %s -> %s", job_id, previous.value, status.value)
        return True

    def add_log(
        self,
        job_id: str,
        message: str,
        level: LogLevel = LogLevel.INFO,
        data: Any = None,
    ) -> bool:
        """Append a log entry without touching the status."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            self._append(job, message, level, data)
        return True

    def list_jobs(self) -> list[JobSummary]:
        """List all jobs without log bodies, most recent first."""
        with self._lock:
            summaries = [JobSummary.from_job(job) for job in self._jobs.values()]
        return sorted(summaries, key=lambda s: s.created_at, reverse=True)

    def get_logs(self, job_id: str) -> list[LogEntry] | None:
        """Return a job's log entries.

        Jobs no longer held in memory (e.g. after a restart) are served from
        the log store. None if neither knows the id.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None and job.logs is not None:
                return list(job.logs)
        if job is None and not self._log_store.exists(job_id):
            return None
        return self._log_store.read_all(job_id)

    def read_raw_log(self, job_id: str) -> str | None:
        return self._log_store.read_raw(job_id)

    def status_counts(self) -> dict[str, int]:
        """Count jobs per status, plus a ``total``."""
        counts = {status.value: 0 for status in JobStatus}
        with self._lock:
            for job in self._jobs.values():
                counts[job.status.value] += 1
            counts["total"] = len(self._jobs)
        return counts

    # ------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------

    @staticmethod
    def _now(job: Job) -> datetime:
        now = utcnow()
        if job.updated_at is not None and now < job.updated_at:
            return job.updated_at
        return now

    def _append(self, job: Job, message: str, level: LogLevel, data: Any = None) -> None:
        timestamp = utcnow()
        last = self._last_logged.get(job.id)
        if last is not None and timestamp < last:
            timestamp = last
        self._last_logged[job.id] = timestamp
        entry = LogEntry(timestamp=timestamp, level=level, message=message, data=data)
        if job.logs is not None:
            job.logs.append(entry)
        job.log_count += 1
        self._log_store.append(job.id, entry)
