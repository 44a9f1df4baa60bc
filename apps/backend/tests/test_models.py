"""Tests for job data models."""

import re
from datetime import datetime, timezone

import pytest

from spacecast.jobs.models import (
    Job,
    JobStatus,
    JobSummary,
    JobType,
    LogEntry,
    LogLevel,
    can_transition,
    generate_job_id,
)


class TestJobStatus:
    def test_terminal_states(self) -> None:
        assert JobStatus.COMPLETED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.QUEUED.is_terminal
        assert not JobStatus.SUMMARIZING.is_terminal

    @pytest.mark.parametrize(
        "current,new",
        [
            (JobStatus.QUEUED, JobStatus.PROCESSING),
            (JobStatus.PROCESSING, JobStatus.DOWNLOADING),
            (JobStatus.PROCESSING, JobStatus.COMPLETED),
            (JobStatus.PROCESSING, JobStatus.UPLOADING),
            (JobStatus.DOWNLOADING, JobStatus.UPLOADING),
            (JobStatus.UPLOADING, JobStatus.SUMMARIZING),
            (JobStatus.SUMMARIZING, JobStatus.COMPLETED),
            (JobStatus.QUEUED, JobStatus.FAILED),
            (JobStatus.DOWNLOADING, JobStatus.FAILED),
        ],
    )
    def test_allowed_transitions(self, current: JobStatus, new: JobStatus) -> None:
        assert can_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (JobStatus.DOWNLOADING, JobStatus.PROCESSING),
            (JobStatus.SUMMARIZING, JobStatus.UPLOADING),
            (JobStatus.PROCESSING, JobStatus.PROCESSING),
            (JobStatus.COMPLETED, JobStatus.FAILED),
            (JobStatus.FAILED, JobStatus.COMPLETED),
            (JobStatus.FAILED, JobStatus.FAILED),
            (JobStatus.COMPLETED, JobStatus.QUEUED),
        ],
    )
    def test_forbidden_transitions(self, current: JobStatus, new: JobStatus) -> None:
        assert not can_transition(current, new)


class TestJob:
    def test_job_id_format(self) -> None:
        job_id = generate_job_id()
        assert re.fullmatch(r"job_\d{13}_[0-9a-f]{8}", job_id)
        assert generate_job_id() != job_id

    def test_defaults(self) -> None:
        job = Job(type=JobType.SUMMARIZE, params={"spaces_url": "u"})
        assert job.status is JobStatus.QUEUED
        assert job.updated_at == job.created_at
        assert job.result is None
        assert job.error is None
        assert job.logs == []
        assert job.log_count == 0

    def test_summary_omits_logs(self) -> None:
        job = Job(type=JobType.DOWNLOAD, log_count=3)
        summary = JobSummary.from_job(job)
        assert summary.id == job.id
        assert summary.log_count == 3
        assert not hasattr(summary, "logs")


class TestLogEntry:
    def test_to_dict_without_data(self) -> None:
        ts = datetime(2024, 6, 10, 8, 53, 20, tzinfo=timezone.utc)
        entry = LogEntry(timestamp=ts, level=LogLevel.SUCCESS, message="done")
        assert entry.to_dict() == {
            "timestamp": "2024-06-10T08:53:20+00:00",
            "level": "success",
            "message": "done",
        }

    def test_to_dict_with_data(self) -> None:
        ts = datetime(2024, 6, 10, 8, 53, 20, tzinfo=timezone.utc)
        entry = LogEntry(timestamp=ts, level=LogLevel.ERROR, message="b", data={"n": 1})
        assert entry.to_dict()["data"] == {"n": 1}
