"""Shared fixtures for spacecast tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from spacecast.errors import UploadError
from spacecast.jobs.log_store import JobLogStore
from spacecast.jobs.registry import JobRegistry
from spacecast.services.cache import FingerprintCache
from spacecast.services.downloader import YtDlpDownloader
from spacecast.services.file_upload import UploadedFile
from spacecast.services.orchestrator import FetchOrchestrator

# Fake yt-dlp scripts. Arguments: $1=-i $2=<url> $3=-o $4=<output>.
# Each invocation appends the URL to $CALLS_FILE.
SUCCESS_SCRIPT = """\
echo "$2" >> "{calls}"
echo "[download]  42.0% of ~10MiB"
printf 'audio-bytes' > "$4"
"""

FAIL_SCRIPT = """\
echo "$2" >> "{calls}"
echo "[download] Destination: $4"
echo "ERROR: [twitter:broadcast] unable to download" >&2
exit 1
"""

NO_OUTPUT_SCRIPT = """\
echo "$2" >> "{calls}"
exit 0
"""

SLOW_SUCCESS_SCRIPT = """\
echo "$2" >> "{calls}"
sleep 0.3
printf 'audio-bytes' > "$4"
"""


class FakeYtDlp:
    """A shell script standing in for yt-dlp, with an invocation log."""

    def __init__(self, directory: Path, body: str) -> None:
        self.calls_file = directory / "calls.txt"
        self.path = directory / "fake-yt-dlp"
        self.path.write_text("#!/bin/sh\n" + body.format(calls=self.calls_file))
        self.path.chmod(0o755)

    @property
    def calls(self) -> list[str]:
        if not self.calls_file.exists():
            return []
        return self.calls_file.read_text().splitlines()


class FakeUploader:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.uploaded: list[Path] = []

    async def upload(self, path: str | Path) -> UploadedFile:
        if self.error is not None:
            raise self.error
        path = Path(path)
        self.uploaded.append(path)
        return UploadedFile(
            uri=f"https://files.example/{path.stem}",
            name=f"files/{path.stem}",
            file_name=path.name,
            original_path=str(path),
        )

    def file_exists(self, path: str | Path) -> bool:
        return Path(path).is_file()


class FakeSummarizer:
    def __init__(self) -> None:
        self.requests: list[tuple[str, str | None, str | None]] = []

    async def summarize(
        self,
        file_ref: UploadedFile,
        prompt_type: str | None = None,
        custom_prompt: str | None = None,
    ) -> str:
        self.requests.append((file_ref.uri, prompt_type, custom_prompt))
        return f"summary of {file_ref.uri}"

    def available_prompts(self) -> dict[str, str]:
        return {"default": "As a secretary..."}


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "audios"
    path.mkdir()
    return path


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def log_store(log_dir: Path) -> JobLogStore:
    return JobLogStore(log_dir)


@pytest.fixture
def registry(log_store: JobLogStore) -> JobRegistry:
    return JobRegistry(log_store)


@pytest.fixture
def cache(output_dir: Path) -> FingerprintCache:
    return FingerprintCache(output_dir)


@pytest.fixture
def fake_ytdlp(tmp_path: Path) -> Callable[[str], FakeYtDlp]:
    def _make(body: str) -> FakeYtDlp:
        return FakeYtDlp(tmp_path, body)

    return _make


@pytest.fixture
def make_orchestrator(
    cache: FingerprintCache,
    registry: JobRegistry,
) -> Callable[..., FetchOrchestrator]:
    def _make(
        tool: FakeYtDlp,
        concurrency: int = 2,
        max_retries: int = 2,
        uploader: FakeUploader | None = None,
        summarizer: FakeSummarizer | None = None,
    ) -> FetchOrchestrator:
        return FetchOrchestrator(
            cache=cache,
            downloader=YtDlpDownloader(
                ytdlp_path=str(tool.path),
                progress_interval=0.05,
                progress_threshold_bytes=1024,
            ),
            registry=registry,
            concurrency=concurrency,
            max_retries=max_retries,
            retry_delay=0.01,
            uploader=uploader,
            summarizer=summarizer,
        )

    return _make


@pytest.fixture
def failing_uploader() -> FakeUploader:
    return FakeUploader(error=UploadError("Failed to upload file: quota exceeded"))
