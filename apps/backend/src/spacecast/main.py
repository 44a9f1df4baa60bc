"""Main entry point for the spacecast application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from spacecast.api.deps import init_orchestrator
from spacecast.api.errors import register_exception_handlers
from spacecast.api.routes import downloads, health, jobs, summaries
from spacecast.config import settings
from spacecast.services.orchestrator import FetchOrchestrator

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Configure process-wide logging from settings."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(orchestrator: FetchOrchestrator | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator; built from settings at startup
            when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize resources on startup, clean up on shutdown."""
        if orchestrator is None:
            settings.ensure_directories()
        active = init_orchestrator(orchestrator)
        logger.info(
            "Download queue ready (concurrency=%d, retries=%d)",
            active.queue.concurrency, active.queue.max_retries,
        )
        yield
        await active.shutdown()

    app = FastAPI(
        title="spacecast",
        description="Download, cache and summarize Spaces audio",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(health.router)
    app.include_router(downloads.router)
    app.include_router(summaries.router)
    app.include_router(jobs.router)

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    configure_logging()
    settings.ensure_directories()
    uvicorn.run(
        "spacecast.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
