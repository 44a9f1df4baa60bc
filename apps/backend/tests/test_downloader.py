"""Unit tests for YtDlpDownloader."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import FAIL_SCRIPT, NO_OUTPUT_SCRIPT, SUCCESS_SCRIPT
from spacecast.errors import DownloadError
from spacecast.services.downloader import DownloadResult, YtDlpDownloader, filter_fatal_lines

URL = "https://x.com/i/spaces/1YqKDoNjbvjJV"

GROWING_SCRIPT = """\
echo "$2" >> "{calls}"
printf '%0200d' 0 > "$4.part"
sleep 0.3
printf '%0450d' 0 > "$4.part"
sleep 0.3
mv "$4.part" "$4"
"""


class TestFilterFatalLines:
    def test_keeps_only_fatal_markers(self):
        output = "\n".join([
            "[download]  12.5% of ~50.00MiB",
            "WARNING: unable to extract uploader",
            "ERROR: unable to download video data",
            "",
            "Traceback (most recent call last):",
            "fatal: connection reset",
        ])
        assert filter_fatal_lines(output) == [
            "ERROR: unable to download video data",
            "Traceback (most recent call last):",
            "fatal: connection reset",
        ]

    def test_empty_output(self):
        assert filter_fatal_lines("") == []


class TestDownloadResult:
    def test_to_dict(self, tmp_path):
        result = DownloadResult(output_path=tmp_path / "abc.mp3", cached=True)
        assert result.to_dict() == {
            "output_path": str(tmp_path / "abc.mp3"),
            "filename": "abc.mp3",
            "cached": True,
        }


class TestYtDlpDownloader:
    def test_build_command(self):
        downloader = YtDlpDownloader(ytdlp_path="/usr/bin/yt-dlp")
        assert downloader.build_command(URL, Path("/tmp/a.mp3")) == [
            "/usr/bin/yt-dlp", "-i", URL, "-o", "/tmp/a.mp3",
        ]

    def test_rejects_non_positive_threshold(self):
        with pytest.raises(ValueError):
            YtDlpDownloader(progress_threshold_bytes=0)

    @pytest.mark.asyncio
    async def test_success(self, fake_ytdlp, output_dir):
        tool = fake_ytdlp(SUCCESS_SCRIPT)
        downloader = YtDlpDownloader(ytdlp_path=str(tool.path))
        target = output_dir / "out.mp3"
        lines: list[str] = []

        path = await downloader.download(URL, target, on_output=lines.append)

        assert path == target
        assert target.read_bytes() == b"audio-bytes"
        assert tool.calls == [URL]
        assert lines == []

    @pytest.mark.asyncio
    async def test_creates_missing_output_directory(self, fake_ytdlp, tmp_path):
        tool = fake_ytdlp(SUCCESS_SCRIPT)
        downloader = YtDlpDownloader(ytdlp_path=str(tool.path))
        target = tmp_path / "nested" / "dir" / "out.mp3"

        await downloader.download(URL, target)
        assert target.is_file()

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, fake_ytdlp, output_dir):
        tool = fake_ytdlp(FAIL_SCRIPT)
        downloader = YtDlpDownloader(ytdlp_path=str(tool.path))
        lines: list[str] = []

        with pytest.raises(DownloadError) as exc_info:
            await downloader.download(URL, output_dir / "out.mp3", on_output=lines.append)

        assert str(exc_info.value) == (
            "yt-dlp exited with code 1: ERROR: [twitter:broadcast] unable to download"
        )
        assert lines == ["ERROR: [twitter:broadcast] unable to download"]

    @pytest.mark.asyncio
    async def test_clean_exit_without_output_file(self, fake_ytdlp, output_dir):
        tool = fake_ytdlp(NO_OUTPUT_SCRIPT)
        downloader = YtDlpDownloader(ytdlp_path=str(tool.path))

        with pytest.raises(DownloadError, match="Output file not found"):
            await downloader.download(URL, output_dir / "out.mp3")

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path, output_dir):
        downloader = YtDlpDownloader(ytdlp_path=str(tmp_path / "no-such-tool"))

        with pytest.raises(DownloadError, match="Failed to start"):
            await downloader.download(URL, output_dir / "out.mp3")

    @pytest.mark.asyncio
    async def test_unrunnable_argument_is_a_download_error(self, fake_ytdlp, output_dir):
        tool = fake_ytdlp(SUCCESS_SCRIPT)
        downloader = YtDlpDownloader(ytdlp_path=str(tool.path))

        with pytest.raises(DownloadError, match="Failed to start"):
            await downloader.download("https://x.com/i/spaces/a\x00b", output_dir / "out.mp3")
        assert tool.calls == []

    @pytest.mark.asyncio
    async def test_progress_reported_per_threshold_crossing(self, fake_ytdlp, output_dir):
        tool = fake_ytdlp(GROWING_SCRIPT)
        downloader = YtDlpDownloader(
            ytdlp_path=str(tool.path),
            progress_interval=0.05,
            progress_threshold_bytes=100,
        )
        sizes: list[int] = []

        await downloader.download(URL, output_dir / "out.mp3", on_progress=sizes.append)

        assert sizes
        assert all(size >= 100 for size in sizes)
        assert sizes == sorted(set(sizes))
        steps = [size // 100 for size in sizes]
        assert steps == sorted(set(steps))

    @pytest.mark.asyncio
    async def test_progress_poller_stops_after_download(self, fake_ytdlp, output_dir):
        tool = fake_ytdlp(FAIL_SCRIPT)
        downloader = YtDlpDownloader(ytdlp_path=str(tool.path), progress_interval=0.01)

        with pytest.raises(DownloadError):
            await downloader.download(URL, output_dir / "out.mp3", on_progress=lambda _: None)

        await asyncio.sleep(0)
        assert asyncio.all_tasks() == {asyncio.current_task()}
