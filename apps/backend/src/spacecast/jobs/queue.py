"""Bounded-concurrency download queue with fixed-delay retries."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class DownloadTask:
    """A unit of queued work."""

    locator: str
    job_id: str | None = None
    retries_left: int = 0
    attempts: int = 0


# Stage function: runs one attempt of a task, raising on failure.
StageFunction = Callable[[DownloadTask], Awaitable[Any]]
# Retry callback: (task, error) after a failed attempt that will be retried.
RetryCallback = Callable[[DownloadTask, Exception], None]


class WorkerQueue:
    """Runs tasks with a hard concurrency ceiling.

    Tasks are admitted in FIFO order whenever fewer than ``concurrency``
    are running. A failing task is retried up to ``max_retries`` more times,
    sleeping ``retry_delay`` seconds between attempts while keeping its
    slot. The future returned by :meth:`enqueue` resolves with the stage
    result, or fails with the last error once retries are exhausted. On
    shutdown, unsettled futures are cancelled, including tasks waiting out
    a retry delay.

    Tasks for the same locator are not merged; each one runs on its own.
    """

    def __init__(
        self,
        stage_fn: StageFunction,
        concurrency: int = 2,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        on_retry: RetryCallback | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")

        self.concurrency = concurrency
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._stage_fn = stage_fn
        self._on_retry = on_retry
        self._pending: deque[tuple[DownloadTask, asyncio.Future[Any]]] = deque()
        self._running: set[asyncio.Task[None]] = set()
        self._closed = False

    def enqueue(self, locator: str, job_id: str | None = None) -> asyncio.Future[Any]:
        """Queue a task and return a future for its outcome.

        Must be called from a running event loop.
        """
        if self._closed:
            raise RuntimeError("WorkerQueue has been shut down")

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        task = DownloadTask(locator=locator, job_id=job_id, retries_left=self.max_retries)
        self._pending.append((task, future))
        logger.info(
            "Queued download for %s (job=%s, queued=%d, running=%d)",
            locator, job_id, len(self._pending), len(self._running),
        )
        self._dispatch()
        return future

    def stats(self) -> dict[str, int]:
        """Current queue counters."""
        queued = len(self._pending)
        running = len(self._running)
        return {"queued": queued, "running": running, "total": queued + running}

    async def shutdown(self) -> None:
        """Cancel queued and running tasks and wait for workers to exit."""
        self._closed = True
        while self._pending:
            _, future = self._pending.popleft()
            future.cancel()

        workers = list(self._running)
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    def _dispatch(self) -> None:
        while self._pending and len(self._running) < self.concurrency:
            task, future = self._pending.popleft()
            if future.cancelled():
                continue
            worker = asyncio.create_task(self._run(task, future))
            self._running.add(worker)
            worker.add_done_callback(self._on_worker_done)

    def _on_worker_done(self, worker: asyncio.Task[None]) -> None:
        self._running.discard(worker)
        if not self._closed:
            self._dispatch()

    async def _run(self, task: DownloadTask, future: asyncio.Future[Any]) -> None:
        try:
            await self._attempt_until_settled(task, future)
        finally:
            # Cancelled mid-attempt or during the retry delay.
            if not future.done():
                future.cancel()

    async def _attempt_until_settled(
        self, task: DownloadTask, future: asyncio.Future[Any]
    ) -> None:
        while True:
            task.attempts += 1
            try:
                result = await self._stage_fn(task)
            except Exception as e:
                if task.retries_left <= 0:
                    logger.error(
                        "Download of %s failed after %d attempt(s): %s",
                        task.locator, task.attempts, e,
                    )
                    if not future.done():
                        future.set_exception(e)
                    return

                task.retries_left -= 1
                logger.warning(
                    "Attempt %d for %s failed (%s); retrying in %.1fs (%d left)",
                    task.attempts, task.locator, e, self.retry_delay, task.retries_left,
                )
                self._notify_retry(task, e)
                await asyncio.sleep(self.retry_delay)
            else:
                if not future.done():
                    future.set_result(result)
                return

    def _notify_retry(self, task: DownloadTask, error: Exception) -> None:
        if self._on_retry is None:
            return
        try:
            self._on_retry(task, error)
        except Exception:
            logger.exception("Retry callback failed for %s", task.locator)
