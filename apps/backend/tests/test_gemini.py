"""Tests for the Gemini upload and summarization clients."""

from __future__ import annotations

import json

import httpx
import pytest

from spacecast.errors import SummarizationError, UploadError
from spacecast.prompts import DEFAULT_PROMPT, PROMPTS
from spacecast.services.file_upload import GeminiFileUploader, UploadedFile
from spacecast.services.summarization import GeminiSummarizer

BASE_URL = "https://gemini.test"
UPLOAD_URL = "https://gemini.test/upload/session/abc"


class UploadServer:
    """Scripted Files API: start, upload/finalize, then state polls."""

    def __init__(self, states: list[str], start_status: int = 200) -> None:
        self.states = list(states)
        self.start_status = start_status
        self.requests: list[httpx.Request] = []
        self.uploaded_body = b""

    def _file(self, state: str) -> dict:
        return {
            "name": "files/abc123",
            "uri": f"{BASE_URL}/v1beta/files/abc123",
            "mimeType": "audio/mp3",
            "state": state,
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/upload/v1beta/files":
            if self.start_status != 200:
                return httpx.Response(self.start_status, text="quota exceeded")
            return httpx.Response(200, headers={"x-goog-upload-url": UPLOAD_URL})
        if str(request.url) == UPLOAD_URL:
            self.uploaded_body = request.content
            return httpx.Response(200, json={"file": self._file(self.states.pop(0))})
        if request.url.path == "/v1beta/files/abc123":
            return httpx.Response(200, json=self._file(self.states.pop(0)))
        return httpx.Response(404, text="not found")


def _uploader(server: UploadServer) -> GeminiFileUploader:
    return GeminiFileUploader(
        api_key="test-key",
        base_url=BASE_URL,
        poll_interval=0,
        transport=httpx.MockTransport(server),
    )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

class TestGeminiFileUploader:
    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            GeminiFileUploader(api_key="")

    @pytest.mark.asyncio
    async def test_upload_waits_for_processing(self, tmp_path):
        audio = tmp_path / "space.mp3"
        audio.write_bytes(b"mp3-data")
        server = UploadServer(["PROCESSING", "PROCESSING", "ACTIVE"])

        uploaded = await _uploader(server).upload(audio)

        assert uploaded == UploadedFile(
            uri=f"{BASE_URL}/v1beta/files/abc123",
            mime_type="audio/mp3",
            name="files/abc123",
            file_name="space.mp3",
            original_path=str(audio),
        )
        assert server.uploaded_body == b"mp3-data"
        assert len(server.requests) == 4

        start = server.requests[0]
        assert start.headers["x-goog-api-key"] == "test-key"
        assert start.headers["x-goog-upload-protocol"] == "resumable"
        assert start.headers["x-goog-upload-header-content-length"] == "8"
        assert json.loads(start.content) == {"file": {"display_name": "space.mp3"}}
        assert server.requests[1].headers["x-goog-upload-command"] == "upload, finalize"

    @pytest.mark.asyncio
    async def test_processing_failure(self, tmp_path):
        audio = tmp_path / "space.mp3"
        audio.write_bytes(b"mp3-data")
        server = UploadServer(["PROCESSING", "FAILED"])

        with pytest.raises(UploadError, match="Audio processing failed."):
            await _uploader(server).upload(audio)

    @pytest.mark.asyncio
    async def test_rejected_upload(self, tmp_path):
        audio = tmp_path / "space.mp3"
        audio.write_bytes(b"mp3-data")
        server = UploadServer([], start_status=429)

        with pytest.raises(UploadError, match="quota exceeded"):
            await _uploader(server).upload(audio)

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        server = UploadServer(["ACTIVE"])

        with pytest.raises(UploadError, match="not found"):
            await _uploader(server).upload(tmp_path / "missing.mp3")
        assert server.requests == []

    def test_file_exists(self, tmp_path):
        audio = tmp_path / "space.mp3"
        audio.write_bytes(b"x")
        uploader = _uploader(UploadServer([]))
        assert uploader.file_exists(audio)
        assert not uploader.file_exists(tmp_path / "other.mp3")


# ---------------------------------------------------------------------------
# Summarization
# ---------------------------------------------------------------------------

FILE_REF = UploadedFile(uri=f"{BASE_URL}/v1beta/files/abc123", mime_type="audio/mp3")


def _summarizer(handler) -> GeminiSummarizer:
    return GeminiSummarizer(
        api_key="test-key",
        model="gemini-1.5-flash",
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
    )


def _candidates(*texts: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


class TestGeminiSummarizer:
    def test_resolve_prompt_precedence(self):
        summarizer = _summarizer(lambda request: httpx.Response(500))
        assert summarizer.resolve_prompt("formatted", "custom") == "custom"
        assert summarizer.resolve_prompt("formatted") == PROMPTS["formatted"]
        assert summarizer.resolve_prompt("unknown") == DEFAULT_PROMPT
        assert summarizer.resolve_prompt() == DEFAULT_PROMPT

    def test_available_prompts_are_previews(self):
        prompts = _summarizer(lambda request: httpx.Response(500)).available_prompts()
        assert set(prompts) == set(PROMPTS)
        assert prompts["default"] == DEFAULT_PROMPT[:100] + "..."

    @pytest.mark.asyncio
    async def test_summarize(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_candidates("Main speakers: ", "@host"))

        summary = await _summarizer(handler).summarize(FILE_REF, custom_prompt="Be brief")

        assert summary == "Main speakers: @host"
        request = seen[0]
        assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert request.headers["x-goog-api-key"] == "test-key"
        assert json.loads(request.content) == {
            "contents": [
                {
                    "parts": [
                        {"text": "Be brief"},
                        {"file_data": {"mime_type": "audio/mp3", "file_uri": FILE_REF.uri}},
                    ]
                }
            ]
        }

    @pytest.mark.asyncio
    async def test_blocked_prompt(self):
        summarizer = _summarizer(
            lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
        )
        with pytest.raises(SummarizationError, match="Prompt was blocked: SAFETY"):
            await summarizer.summarize(FILE_REF)

    @pytest.mark.asyncio
    async def test_empty_summary(self):
        summarizer = _summarizer(lambda request: httpx.Response(200, json=_candidates("")))
        with pytest.raises(SummarizationError, match="empty summary"):
            await summarizer.summarize(FILE_REF)

    @pytest.mark.asyncio
    async def test_api_error(self):
        summarizer = _summarizer(lambda request: httpx.Response(400, text="bad request"))
        with pytest.raises(SummarizationError, match="Gemini API returned error: bad request"):
            await summarizer.summarize(FILE_REF)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SummarizationError, match="Failed to connect"):
            await _summarizer(handler).summarize(FILE_REF)
