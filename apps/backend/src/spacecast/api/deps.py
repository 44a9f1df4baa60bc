"""FastAPI dependencies."""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException

from spacecast.config import Settings, settings
from spacecast.jobs.registry import JobRegistry
from spacecast.services.orchestrator import FetchOrchestrator

logger = logging.getLogger(__name__)

_orchestrator: FetchOrchestrator | None = None


def init_orchestrator(orchestrator: FetchOrchestrator | None = None) -> FetchOrchestrator:
    """Initialize the global FetchOrchestrator (called at app startup)."""
    global _orchestrator
    _orchestrator = orchestrator or FetchOrchestrator.from_settings(settings)
    return _orchestrator


def get_orchestrator() -> FetchOrchestrator:
    """Dependency that provides the FetchOrchestrator instance."""
    if _orchestrator is None:
        raise RuntimeError("FetchOrchestrator not initialized; call init_orchestrator() first")
    return _orchestrator


def get_registry(
    orchestrator: FetchOrchestrator = Depends(get_orchestrator),
) -> JobRegistry:
    return orchestrator.registry


def get_settings() -> Settings:
    return settings


def verify_api_key(
    x_api_key: str | None = Header(None, alias="x-api-key"),
    app_settings: Settings = Depends(get_settings),
) -> None:
    """Check the ``x-api-key`` header when API keys are required."""
    if not app_settings.api_key_required:
        return
    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key is required")
    if x_api_key not in app_settings.api_keys:
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(status_code=403, detail="Invalid API key")
