"""Fetch orchestration: cache, download queue, job tracking and summaries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from spacecast.config import Settings
from spacecast.errors import InvalidLocatorError, ServiceUnavailableError
from spacecast.jobs.log_store import JobLogStore
from spacecast.jobs.models import JobStatus, JobType, LogLevel
from spacecast.jobs.queue import DownloadTask, WorkerQueue
from spacecast.jobs.registry import JobRegistry
from spacecast.services.cache import FingerprintCache
from spacecast.services.downloader import DownloadResult, YtDlpDownloader
from spacecast.services.interfaces import ISummarizationService, IUploadService

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


def validate_locator(locator: Any) -> str:
    """Return the stripped locator or raise InvalidLocatorError."""
    if not isinstance(locator, str) or not locator.strip():
        raise InvalidLocatorError("Spaces URL is required")
    locator = locator.strip()
    if locator.startswith("-") or any(ord(c) < 32 or ord(c) == 127 for c in locator):
        raise InvalidLocatorError(f"Invalid Spaces URL: {locator!r}")
    return locator


class FetchOrchestrator:
    """Entry points for synchronous and job-based fetch and summary requests.

    Downloads go through a :class:`WorkerQueue`; multi-stage pipelines run
    as supervised background tasks owned by this object. Each background
    task reports its job's outcome to the registry exactly once.
    """

    def __init__(
        self,
        cache: FingerprintCache,
        downloader: YtDlpDownloader,
        registry: JobRegistry,
        concurrency: int = 2,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        uploader: IUploadService | None = None,
        summarizer: ISummarizationService | None = None,
    ) -> None:
        self.cache = cache
        self.downloader = downloader
        self.registry = registry
        self.uploader = uploader
        self.summarizer = summarizer
        self.queue = WorkerQueue(
            self._run_download_stage,
            concurrency=concurrency,
            max_retries=max_retries,
            retry_delay=retry_delay,
            on_retry=self._on_retry,
        )
        self._background: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> FetchOrchestrator:
        """Wire up all components from application settings."""
        from spacecast.services.file_upload import GeminiFileUploader
        from spacecast.services.summarization import GeminiSummarizer

        uploader = None
        summarizer = None
        if settings.google_api_key:
            uploader = GeminiFileUploader(
                api_key=settings.google_api_key,
                base_url=settings.gemini_base_url,
            )
            summarizer = GeminiSummarizer(
                api_key=settings.google_api_key,
                model=settings.gemini_model,
                base_url=settings.gemini_base_url,
            )
        else:
            logger.warning("GOOGLE_API_KEY not set. Summarization service will not be available.")

        cache = FingerprintCache(settings.output_dir)
        cache.ensure_dir()
        return cls(
            cache=cache,
            downloader=YtDlpDownloader(
                ytdlp_path=settings.ytdlp_path,
                progress_interval=settings.progress_interval,
                progress_threshold_bytes=settings.progress_threshold_bytes,
            ),
            registry=JobRegistry(JobLogStore(settings.log_dir)),
            concurrency=settings.max_concurrent_downloads,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            uploader=uploader,
            summarizer=summarizer,
        )

    @property
    def summarization_available(self) -> bool:
        return self.uploader is not None and self.summarizer is not None

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    async def fetch_sync(self, locator: str) -> DownloadResult:
        """Return the artifact for ``locator``, downloading it if needed.

        Raises:
            InvalidLocatorError: If the locator is missing or malformed.
            DownloadError: If every download attempt failed.
        """
        locator = validate_locator(locator)
        cached = self.cache.lookup(locator)
        if cached is not None:
            logger.info("Cache hit for %s: %s", locator, cached)
            return DownloadResult(output_path=cached, cached=True)
        return await self.queue.enqueue(locator)

    async def fetch_async(self, locator: str) -> str:
        """Start a download job and return its id without waiting."""
        locator = validate_locator(locator)
        job_id = self.registry.create_job(JobType.DOWNLOAD, {"spaces_url": locator})
        self.registry.update_job(job_id, JobStatus.PROCESSING)

        cached = self.cache.lookup(locator)
        if cached is not None:
            self.registry.add_log(job_id, "Audio found in cache", LogLevel.INFO, {"path": str(cached)})
            result = DownloadResult(output_path=cached, cached=True)
            self.registry.update_job(job_id, JobStatus.COMPLETED, result=result.to_dict())
            return job_id

        future = self.queue.enqueue(locator, job_id=job_id)
        self._supervise(self._finish_download_job(job_id, future), job_id)
        return job_id

    async def _finish_download_job(self, job_id: str, future: asyncio.Future[Any]) -> None:
        try:
            result: DownloadResult = await future
        except Exception as e:
            logger.error("Job %s failed: %s", job_id, e)
            self.registry.update_job(job_id, JobStatus.FAILED, error=str(e))
            return
        self.registry.update_job(job_id, JobStatus.COMPLETED, result=result.to_dict())

    async def _run_download_stage(self, task: DownloadTask) -> DownloadResult:
        """One download attempt, executed inside a worker slot."""
        # Another task may have filled the cache while this one was queued.
        cached = self.cache.lookup(task.locator)
        if cached is not None:
            if task.job_id:
                self.registry.add_log(
                    task.job_id, "Audio appeared in cache while queued", LogLevel.INFO,
                    {"path": str(cached)},
                )
            return DownloadResult(output_path=cached, cached=True)

        output_path = self.cache.artifact_path(task.locator)
        if task.job_id is None:
            await self.downloader.download(task.locator, output_path)
            return DownloadResult(output_path=output_path, cached=False)

        job_id = task.job_id
        if task.attempts == 1:
            self.registry.update_job(job_id, JobStatus.DOWNLOADING)
        self.registry.add_log(
            job_id, f"Starting download (attempt {task.attempts})", LogLevel.INFO,
            {"output_path": str(output_path)},
        )

        def on_progress(size: int) -> None:
            self.registry.add_log(
                job_id, f"Downloaded {size / _MB:.1f} MB", LogLevel.PROGRESS, {"bytes": size}
            )

        def on_output(line: str) -> None:
            self.registry.add_log(job_id, line, LogLevel.ERROR)

        await self.downloader.download(
            task.locator, output_path, on_progress=on_progress, on_output=on_output
        )
        self.registry.add_log(job_id, "Download finished", LogLevel.SUCCESS, {"path": str(output_path)})
        return DownloadResult(output_path=output_path, cached=False)

    def _on_retry(self, task: DownloadTask, error: Exception) -> None:
        if task.job_id is None:
            return
        self.registry.add_log(
            task.job_id,
            f"Attempt {task.attempts} failed: {error}",
            LogLevel.ERROR,
            {"attempt": task.attempts, "retries_left": task.retries_left},
        )

    # ------------------------------------------------------------------
    # Summarize
    # ------------------------------------------------------------------

    async def summarize_sync(
        self,
        locator: str,
        prompt_type: str | None = None,
        custom_prompt: str | None = None,
    ) -> dict[str, Any]:
        """Download, upload and summarize in one call."""
        uploader, summarizer = self._require_summarization()
        download = await self.fetch_sync(locator)
        logger.info("Download completed: %s", download.filename)

        uploaded = await uploader.upload(download.output_path)
        summary = await summarizer.summarize(uploaded, prompt_type, custom_prompt)
        return {
            "summary": summary,
            "audio_file": download.to_dict(),
            "uploaded_file": uploaded.to_dict(),
        }

    async def summarize_async(
        self,
        locator: str,
        prompt_type: str | None = None,
        custom_prompt: str | None = None,
    ) -> str:
        """Start a summarize job and return its id without waiting."""
        self._require_summarization()
        locator = validate_locator(locator)
        params = {
            "spaces_url": locator,
            "prompt_type": prompt_type,
            "custom_prompt": custom_prompt,
        }
        job_id = self.registry.create_job(JobType.SUMMARIZE, params)
        self.registry.update_job(job_id, JobStatus.PROCESSING)
        self._supervise(
            self._run_summarize_job(job_id, locator, prompt_type, custom_prompt), job_id
        )
        return job_id

    async def _run_summarize_job(
        self,
        job_id: str,
        locator: str,
        prompt_type: str | None,
        custom_prompt: str | None,
    ) -> None:
        uploader, summarizer = self._require_summarization()
        try:
            cached = self.cache.lookup(locator)
            if cached is not None:
                self.registry.add_log(job_id, "Audio found in cache", LogLevel.INFO, {"path": str(cached)})
                download = DownloadResult(output_path=cached, cached=True)
            else:
                download = await self.queue.enqueue(locator, job_id=job_id)

            self.registry.update_job(job_id, JobStatus.UPLOADING)
            self.registry.add_log(
                job_id, "Audio ready", LogLevel.INFO, {"audio_file": download.to_dict()}
            )
            uploaded = await uploader.upload(download.output_path)
            self.registry.add_log(job_id, f"File uploaded: {uploaded.uri}", LogLevel.SUCCESS)

            self.registry.update_job(job_id, JobStatus.SUMMARIZING)
            summary = await summarizer.summarize(uploaded, prompt_type, custom_prompt)

            self.registry.update_job(
                job_id,
                JobStatus.COMPLETED,
                result={
                    "summary": summary,
                    "audio_file": download.to_dict(),
                    "uploaded_file": {"uri": uploaded.uri, "file_name": uploaded.file_name},
                },
            )
        except Exception as e:
            logger.error("Job %s failed: %s", job_id, e)
            self.registry.update_job(job_id, JobStatus.FAILED, error=str(e))

    def _require_summarization(self) -> tuple[IUploadService, ISummarizationService]:
        if self.uploader is None or self.summarizer is None:
            raise ServiceUnavailableError("Google API Key not configured")
        return self.uploader, self.summarizer

    # ------------------------------------------------------------------
    # Status & lifecycle
    # ------------------------------------------------------------------

    def queue_status(self) -> dict[str, Any]:
        return {"queue": self.queue.stats(), "jobs": self.registry.status_counts()}

    async def join(self) -> None:
        """Wait until every background job task has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel queued downloads and background job tasks."""
        await self.queue.shutdown()
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _supervise(self, coro: Coroutine[Any, Any, None], job_id: str) -> None:
        task = asyncio.create_task(coro, name=f"job-{job_id}")
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.warning("Background task %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s crashed", task.get_name(), exc_info=exc)
