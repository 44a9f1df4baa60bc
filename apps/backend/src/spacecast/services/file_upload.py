"""Client for the Gemini Files API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from spacecast.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MIME_TYPE = "audio/mp3"
_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class UploadedFile:
    """A file reference the summarizer can consume."""

    uri: str
    mime_type: str = DEFAULT_MIME_TYPE
    name: str | None = None
    file_name: str | None = None
    original_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "mime_type": self.mime_type,
            "name": self.name,
            "file_name": self.file_name,
            "original_path": self.original_path,
        }


async def _iter_file(path: Path, chunk_size: int = _CHUNK_SIZE) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            yield chunk


class GeminiFileUploader:
    """Uploads local audio to Gemini and waits until it is usable.

    Uses the resumable upload protocol (start + upload/finalize), then polls
    the file resource until it leaves the ``PROCESSING`` state.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        mime_type: str = DEFAULT_MIME_TYPE,
        timeout: float = 300.0,
        poll_interval: float = 10.0,
        max_poll_time: float = 1800.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Google API key is required")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.mime_type = mime_type
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_poll_time = max_poll_time
        self._transport = transport

    def file_exists(self, path: str | Path) -> bool:
        return Path(path).is_file()

    async def upload(self, path: str | Path) -> UploadedFile:
        """Upload an audio file.

        Args:
            path: Local file to upload.

        Returns:
            UploadedFile with the Gemini file URI.

        Raises:
            UploadError: If the file is missing, the API rejects the upload,
                or server-side processing fails or times out.
        """
        path = Path(path)
        if not path.is_file():
            raise UploadError(f"Audio file not found: {path}")

        logger.info("Uploading file %s...", path)
        size = path.stat().st_size

        async with self._client() as client:
            upload_url = await self._start_upload(client, path, size)
            file_info = await self._send_content(client, upload_url, path, size)
            file_info = await self._wait_until_active(client, file_info)

        uri = file_info.get("uri")
        if not uri:
            raise UploadError("Gemini did not return a file URI")

        logger.info("File uploaded successfully with URI: %s", uri)
        return UploadedFile(
            uri=uri,
            mime_type=file_info.get("mimeType", self.mime_type),
            name=file_info.get("name"),
            file_name=path.name,
            original_path=str(path),
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"x-goog-api-key": self._api_key},
            transport=self._transport,
        )

    async def _start_upload(self, client: httpx.AsyncClient, path: Path, size: int) -> str:
        try:
            response = await client.post(
                f"{self.base_url}/upload/v1beta/files",
                headers={
                    "X-Goog-Upload-Protocol": "resumable",
                    "X-Goog-Upload-Command": "start",
                    "X-Goog-Upload-Header-Content-Length": str(size),
                    "X-Goog-Upload-Header-Content-Type": self.mime_type,
                },
                json={"file": {"display_name": path.name}},
            )
        except httpx.RequestError as e:
            raise UploadError(f"Failed to connect to Gemini API: {e}") from e

        if response.status_code != 200:
            raise UploadError(f"Failed to upload file: {response.text}")

        upload_url = response.headers.get("x-goog-upload-url")
        if not upload_url:
            raise UploadError("Gemini API did not return an upload URL")
        return upload_url

    async def _send_content(
        self, client: httpx.AsyncClient, upload_url: str, path: Path, size: int
    ) -> dict[str, Any]:
        try:
            response = await client.post(
                upload_url,
                headers={
                    "Content-Length": str(size),
                    "X-Goog-Upload-Offset": "0",
                    "X-Goog-Upload-Command": "upload, finalize",
                },
                content=_iter_file(path),
            )
        except httpx.RequestError as e:
            raise UploadError(f"Failed to upload file: {e}") from e

        if response.status_code != 200:
            raise UploadError(f"Failed to upload file: {response.text}")

        return response.json().get("file", {})

    async def _wait_until_active(
        self, client: httpx.AsyncClient, file_info: dict[str, Any]
    ) -> dict[str, Any]:
        name = file_info.get("name")
        start_time = asyncio.get_running_loop().time()

        while file_info.get("state") == "PROCESSING":
            if not name:
                raise UploadError("Gemini file has no resource name to poll")
            elapsed = asyncio.get_running_loop().time() - start_time
            if elapsed > self.max_poll_time:
                raise UploadError(f"File processing timed out after {self.max_poll_time}s")

            await asyncio.sleep(self.poll_interval)
            try:
                response = await client.get(f"{self.base_url}/v1beta/{name}")
            except httpx.RequestError as e:
                raise UploadError(f"Failed to check file state: {e}") from e
            if response.status_code != 200:
                raise UploadError(f"File state check failed: {response.text}")
            file_info = response.json()

        if file_info.get("state") == "FAILED":
            raise UploadError("Audio processing failed.")
        return file_info
