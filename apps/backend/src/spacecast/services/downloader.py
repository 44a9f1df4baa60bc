"""yt-dlp wrapper with sampled progress reporting."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from spacecast.errors import DownloadError

logger = logging.getLogger(__name__)

# Progress callback: (bytes downloaded so far) -> None
ProgressCallback = Callable[[int], None]
# Output callback: (fatal-looking output line) -> None
OutputCallback = Callable[[str], None]

# yt-dlp writes percentages and warnings on every line; only these survive.
FATAL_MARKERS: tuple[str, ...] = ("ERROR", "fatal", "Traceback")


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of a fetch request."""

    output_path: Path
    cached: bool

    @property
    def filename(self) -> str:
        return self.output_path.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_path": str(self.output_path),
            "filename": self.filename,
            "cached": self.cached,
        }


def filter_fatal_lines(output: str) -> list[str]:
    """Keep only output lines that look like fatal errors."""
    return [
        line.strip()
        for line in output.splitlines()
        if line.strip() and any(marker in line for marker in FATAL_MARKERS)
    ]


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


class YtDlpDownloader:
    """Runs the external fetch tool and watches the partial file grow.

    The tool's own progress stream is too noisy to rely on, so progress is
    sampled by stat'ing ``<destination>.part`` (or the destination itself)
    every ``progress_interval`` seconds. A callback fires each time the size
    crosses another multiple of ``progress_threshold_bytes``.
    """

    def __init__(
        self,
        ytdlp_path: str = "yt-dlp",
        progress_interval: float = 1.0,
        progress_threshold_bytes: int = 100 * 1024 * 1024,
    ) -> None:
        if progress_threshold_bytes <= 0:
            raise ValueError("progress_threshold_bytes must be positive")
        self.ytdlp_path = ytdlp_path
        self.progress_interval = progress_interval
        self.progress_threshold_bytes = progress_threshold_bytes

    def build_command(self, locator: str, output_path: Path) -> list[str]:
        return [self.ytdlp_path, "-i", locator, "-o", str(output_path)]

    async def download(
        self,
        locator: str,
        output_path: Path,
        on_progress: ProgressCallback | None = None,
        on_output: OutputCallback | None = None,
    ) -> Path:
        """Fetch ``locator`` into ``output_path``.

        Args:
            locator: Source URL.
            output_path: Destination file.
            on_progress: Called with the byte count at each threshold crossing.
            on_output: Called with each fatal-looking line the tool printed.

        Returns:
            The destination path.

        Raises:
            DownloadError: If the tool cannot start, exits non-zero, or exits
                cleanly without producing the destination file.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command(locator, output_path)
        logger.info("Executing: %s", " ".join(cmd))

        monitor: asyncio.Task[None] | None = None
        if on_progress is not None:
            monitor = asyncio.create_task(self._monitor_progress(output_path, on_progress))

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except (OSError, ValueError) as e:
            raise DownloadError(f"Failed to start {self.ytdlp_path}: {e}") from e
        finally:
            if monitor is not None:
                monitor.cancel()
                try:
                    await monitor
                except asyncio.CancelledError:
                    pass

        fatal_lines = filter_fatal_lines(result.stdout or "") + filter_fatal_lines(
            result.stderr or ""
        )
        for line in fatal_lines:
            logger.warning("yt-dlp: %s", line)
            if on_output is not None:
                on_output(line)

        if result.returncode != 0:
            detail = fatal_lines[-1] if fatal_lines else _last_line(result.stderr)
            message = f"yt-dlp exited with code {result.returncode}"
            if detail:
                message = f"{message}: {detail}"
            raise DownloadError(message)

        if not output_path.is_file():
            raise DownloadError("Download failed: Output file not found")

        logger.info("Download completed: %s", output_path)
        return output_path

    async def _monitor_progress(self, output_path: Path, on_progress: ProgressCallback) -> None:
        partial_path = output_path.with_name(output_path.name + ".part")
        reported_steps = 0

        while True:
            await asyncio.sleep(self.progress_interval)
            size = _file_size(partial_path) or _file_size(output_path)
            steps = size // self.progress_threshold_bytes
            if steps <= reported_steps:
                continue
            reported_steps = steps
            try:
                on_progress(size)
            except Exception:
                logger.exception("Progress callback failed for %s", output_path)


def _last_line(text: str | None) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""
