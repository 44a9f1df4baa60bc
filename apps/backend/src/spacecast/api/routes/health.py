"""Liveness endpoint (no API key required)."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from spacecast import __version__
from spacecast.api.deps import get_orchestrator
from spacecast.services.orchestrator import FetchOrchestrator

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    summarization: bool
    downloads_running: int
    downloads_queued: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> HealthResponse:
    stats = orchestrator.queue.stats()
    return HealthResponse(
        status="healthy",
        version=__version__,
        summarization=orchestrator.summarization_available,
        downloads_running=stats["running"],
        downloads_queued=stats["queued"],
    )
