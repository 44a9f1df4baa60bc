"""Service interfaces (Protocols) for the summarization collaborators.

The orchestrator depends on these contracts rather than on the Gemini
clients directly, so tests and alternative backends can be swapped in.
"""

from pathlib import Path
from typing import Protocol

from spacecast.services.file_upload import UploadedFile


class IUploadService(Protocol):
    """Interface for pushing a local artifact to the AI service."""

    async def upload(self, path: str | Path) -> UploadedFile:
        """Upload a file.

        Args:
            path: Local file to upload

        Returns:
            UploadedFile with URI and MIME type
        """
        ...

    def file_exists(self, path: str | Path) -> bool:
        ...


class ISummarizationService(Protocol):
    """Interface for generating a summary from an uploaded file."""

    async def summarize(
        self,
        file_ref: UploadedFile,
        prompt_type: str | None = None,
        custom_prompt: str | None = None,
    ) -> str:
        """Summarize the referenced file.

        Args:
            file_ref: Uploaded file reference
            prompt_type: Name of a predefined prompt
            custom_prompt: Free-form prompt overriding the type

        Returns:
            Summary text
        """
        ...

    def available_prompts(self) -> dict[str, str]:
        ...
