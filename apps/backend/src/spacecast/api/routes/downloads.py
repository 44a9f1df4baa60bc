"""Download endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from spacecast.api.deps import get_orchestrator, verify_api_key
from spacecast.api.schemas import (
    DownloadRequest,
    DownloadResponse,
    JobCreateResponse,
    QueueStats,
    QueueStatusResponse,
)
from spacecast.services.orchestrator import FetchOrchestrator

router = APIRouter(prefix="/api", tags=["downloads"], dependencies=[Depends(verify_api_key)])


@router.post("/download-spaces", response_model=DownloadResponse)
async def download_spaces(
    req: DownloadRequest,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> DownloadResponse:
    result = await orchestrator.fetch_sync(req.spaces_url)
    return DownloadResponse(
        output_path=str(result.output_path),
        filename=result.filename,
        cached=result.cached,
    )


@router.post("/async/download-spaces", response_model=JobCreateResponse, status_code=202)
async def start_download_job(
    req: DownloadRequest,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> JobCreateResponse:
    job_id = await orchestrator.fetch_async(req.spaces_url)
    return JobCreateResponse(message="Download job started", job_id=job_id)


@router.get("/queue-status", response_model=QueueStatusResponse)
async def queue_status(
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> QueueStatusResponse:
    status = orchestrator.queue_status()
    return QueueStatusResponse(stats=QueueStats(**status["queue"]), jobs=status["jobs"])
