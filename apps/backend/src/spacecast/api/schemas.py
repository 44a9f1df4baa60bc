"""Request and response schemas for the spacecast API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from spacecast.jobs.models import Job, JobSummary, LogEntry


class _Request(BaseModel):
    """Accepts both snake_case and camelCase (legacy client) field names."""

    model_config = ConfigDict(populate_by_name=True)


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class DownloadRequest(_Request):
    spaces_url: str | None = Field(None, alias="spacesUrl", description="Spaces URL")


class SummarizeRequest(_Request):
    spaces_url: str | None = Field(None, alias="spacesUrl", description="Spaces URL")
    prompt_type: str | None = Field(None, alias="promptType", description="Predefined prompt name")
    custom_prompt: str | None = Field(None, alias="customPrompt", description="Free-form prompt")


class UploadRequest(_Request):
    file_path: str | None = Field(None, alias="filePath", description="Local audio file path")


class SummarizeUploadedRequest(_Request):
    file_uri: str | None = Field(None, alias="fileUri", description="Gemini file URI")
    mime_type: str = Field("audio/mp3", alias="mimeType")
    prompt_type: str | None = Field(None, alias="promptType")
    custom_prompt: str | None = Field(None, alias="customPrompt")


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------


class AudioFileResponse(BaseModel):
    output_path: str
    filename: str
    cached: bool


class DownloadResponse(AudioFileResponse):
    success: bool = True


class JobCreateResponse(BaseModel):
    success: bool = True
    message: str
    job_id: str


class QueueStats(BaseModel):
    queued: int
    running: int
    total: int


class QueueStatusResponse(BaseModel):
    success: bool = True
    stats: QueueStats
    jobs: dict[str, int]


class UploadedFileResponse(BaseModel):
    uri: str
    mime_type: str
    file_name: str | None = None
    original_path: str | None = None


class UploadResponse(BaseModel):
    success: bool = True
    uploaded_file: UploadedFileResponse


class SummaryResponse(BaseModel):
    success: bool = True
    summary: str
    audio_file: AudioFileResponse | None = None


class PromptsResponse(BaseModel):
    success: bool = True
    available_prompts: dict[str, str]


class LogEntryResponse(BaseModel):
    timestamp: datetime
    level: str
    message: str
    data: Any = None

    @classmethod
    def from_entry(cls, entry: LogEntry) -> LogEntryResponse:
        return cls(
            timestamp=entry.timestamp,
            level=entry.level.value,
            message=entry.message,
            data=entry.data,
        )


class JobStatusResponse(BaseModel):
    job_id: str
    type: str
    status: str
    params: dict[str, Any] = Field(default_factory=dict)
    result: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime
    logs: list[LogEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_job(cls, job: Job) -> JobStatusResponse:
        return cls(
            job_id=job.id,
            type=job.type.value,
            status=job.status.value,
            params=job.params,
            result=job.result,
            error=job.error,
            created_at=job.created_at,
            updated_at=job.updated_at or job.created_at,
            logs=[LogEntryResponse.from_entry(e) for e in job.logs or []],
        )


class JobListItem(BaseModel):
    job_id: str
    type: str
    status: str
    error: str | None = None
    created_at: datetime
    updated_at: datetime
    log_count: int

    @classmethod
    def from_summary(cls, summary: JobSummary) -> JobListItem:
        return cls(
            job_id=summary.id,
            type=summary.type.value,
            status=summary.status.value,
            error=summary.error,
            created_at=summary.created_at,
            updated_at=summary.updated_at,
            log_count=summary.log_count,
        )


class JobLogsResponse(BaseModel):
    job_id: str
    logs: list[LogEntryResponse]
