"""Job query endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from spacecast.api.deps import get_registry, verify_api_key
from spacecast.api.schemas import (
    JobListItem,
    JobLogsResponse,
    JobStatusResponse,
    LogEntryResponse,
)
from spacecast.jobs.registry import JobRegistry

router = APIRouter(prefix="/api/jobs", tags=["jobs"], dependencies=[Depends(verify_api_key)])


@router.get("", response_model=list[JobListItem])
async def list_jobs(
    registry: JobRegistry = Depends(get_registry),
) -> list[JobListItem]:
    return [JobListItem.from_summary(s) for s in registry.list_jobs()]


@router.get("/{job_id}", response_model=JobStatusResponse)
async def get_job(
    job_id: str,
    registry: JobRegistry = Depends(get_registry),
) -> JobStatusResponse:
    job = registry.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse.from_job(job)


@router.get("/{job_id}/logs", response_model=JobLogsResponse)
async def get_job_logs(
    job_id: str,
    registry: JobRegistry = Depends(get_registry),
) -> JobLogsResponse:
    entries = registry.get_logs(job_id)
    if entries is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobLogsResponse(
        job_id=job_id,
        logs=[LogEntryResponse.from_entry(e) for e in entries],
    )


@router.get("/{job_id}/logs/raw", response_class=PlainTextResponse)
async def get_job_raw_log(
    job_id: str,
    registry: JobRegistry = Depends(get_registry),
) -> PlainTextResponse:
    raw = registry.read_raw_log(job_id)
    if raw is None:
        raise HTTPException(status_code=404, detail="Log not found")
    return PlainTextResponse(raw)
