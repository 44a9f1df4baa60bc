"""Map domain exceptions to JSON error responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from spacecast.errors import (
    DownloadError,
    InvalidJobIdError,
    InvalidLocatorError,
    ServiceUnavailableError,
    SpacecastError,
    SummarizationError,
    UploadError,
)

# exception type -> (status code, error label); first match wins
_ERROR_RESPONSES: list[tuple[type[SpacecastError], int, str]] = [
    (InvalidLocatorError, 400, "Invalid request"),
    (InvalidJobIdError, 404, "Job not found"),
    (ServiceUnavailableError, 503, "Summarization service unavailable"),
    (DownloadError, 500, "Failed to download audio"),
    (UploadError, 500, "Failed to upload file"),
    (SummarizationError, 500, "Failed to summarize audio"),
]


def _describe(exc: SpacecastError) -> tuple[int, str]:
    for exc_type, status_code, label in _ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            return status_code, label
    return 500, "API Error"


async def spacecast_error_handler(request: Request, exc: SpacecastError) -> JSONResponse:
    status_code, label = _describe(exc)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": label, "message": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SpacecastError, spacecast_error_handler)
