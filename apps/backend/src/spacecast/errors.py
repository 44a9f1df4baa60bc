"""Custom exceptions for spacecast."""


class SpacecastError(Exception):
    """Base exception for spacecast."""

    pass


class InvalidLocatorError(SpacecastError):
    """Source locator is missing or malformed."""

    pass


class DownloadError(SpacecastError):
    """The external fetch tool failed or produced no file."""

    pass


class UploadError(SpacecastError):
    """Uploading an artifact to the AI service failed."""

    pass


class SummarizationError(SpacecastError):
    """Summary generation failed."""

    pass


class ServiceUnavailableError(SpacecastError):
    """A collaborator service is not configured."""

    pass


class InvalidTransitionError(SpacecastError):
    """A job status change is not allowed by the state machine."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        super().__init__(f"Job {job_id}: cannot move from '{current}' to '{requested}'")
        self.job_id = job_id
        self.current = current
        self.requested = requested


class InvalidJobIdError(SpacecastError, ValueError):
    """Job id cannot be mapped to a log file."""

    pass
