"""Upload and summarization endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from spacecast.api.deps import get_orchestrator, verify_api_key
from spacecast.api.schemas import (
    AudioFileResponse,
    JobCreateResponse,
    PromptsResponse,
    SummarizeRequest,
    SummarizeUploadedRequest,
    SummaryResponse,
    UploadedFileResponse,
    UploadRequest,
    UploadResponse,
)
from spacecast.errors import ServiceUnavailableError
from spacecast.services.file_upload import UploadedFile
from spacecast.services.orchestrator import FetchOrchestrator

router = APIRouter(prefix="/api", tags=["summaries"], dependencies=[Depends(verify_api_key)])


@router.post("/summarize-spaces", response_model=SummaryResponse)
async def summarize_spaces(
    req: SummarizeRequest,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> SummaryResponse:
    result = await orchestrator.summarize_sync(
        req.spaces_url,
        prompt_type=req.prompt_type,
        custom_prompt=req.custom_prompt,
    )
    return SummaryResponse(
        summary=result["summary"],
        audio_file=AudioFileResponse(**result["audio_file"]),
    )


@router.post("/async/summarize-spaces", response_model=JobCreateResponse, status_code=202)
async def start_summarize_job(
    req: SummarizeRequest,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> JobCreateResponse:
    job_id = await orchestrator.summarize_async(
        req.spaces_url,
        prompt_type=req.prompt_type,
        custom_prompt=req.custom_prompt,
    )
    return JobCreateResponse(message="Summarization job started", job_id=job_id)


@router.get("/prompts", response_model=PromptsResponse)
async def list_prompts(
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> PromptsResponse:
    if orchestrator.summarizer is None:
        raise ServiceUnavailableError("Google API Key not configured")
    return PromptsResponse(available_prompts=orchestrator.summarizer.available_prompts())


@router.post("/upload-audio", response_model=UploadResponse)
async def upload_audio(
    req: UploadRequest,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> UploadResponse:
    uploader = orchestrator.uploader
    if uploader is None:
        raise ServiceUnavailableError("Google API Key not configured")
    if not req.file_path:
        raise HTTPException(status_code=400, detail="File path is required")
    if not uploader.file_exists(req.file_path):
        raise HTTPException(status_code=404, detail="File not found")

    uploaded = await uploader.upload(req.file_path)
    return UploadResponse(
        uploaded_file=UploadedFileResponse(
            uri=uploaded.uri,
            mime_type=uploaded.mime_type,
            file_name=uploaded.file_name,
            original_path=uploaded.original_path,
        )
    )


@router.post("/summarize-uploaded", response_model=SummaryResponse)
async def summarize_uploaded(
    req: SummarizeUploadedRequest,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> SummaryResponse:
    summarizer = orchestrator.summarizer
    if summarizer is None:
        raise ServiceUnavailableError("Google API Key not configured")
    if not req.file_uri:
        raise HTTPException(status_code=400, detail="File URI is required")

    summary = await summarizer.summarize(
        UploadedFile(uri=req.file_uri, mime_type=req.mime_type),
        prompt_type=req.prompt_type,
        custom_prompt=req.custom_prompt,
    )
    return SummaryResponse(summary=summary)
