"""spacecast command-line interface with subcommands.

Usage:
    spacecast-cli download <url>
    spacecast-cli summarize <url> [--prompt-type formatted] [--custom-prompt TEXT]
    spacecast-cli tail <job_id> [-f] [--log-dir ./logs]
    spacecast-cli serve
"""

import argparse
import asyncio
import json
import sys
import time
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

from spacecast.config import settings
from spacecast.errors import SpacecastError
from spacecast.jobs.log_store import JobLogStore, format_entry
from spacecast.services.orchestrator import FetchOrchestrator


async def cmd_download(args: argparse.Namespace) -> None:
    """Download (or reuse) the audio for a Spaces URL."""
    orchestrator = FetchOrchestrator.from_settings(settings)
    try:
        result = await orchestrator.fetch_sync(args.url)
    finally:
        await orchestrator.shutdown()

    status = "Using cached audio" if result.cached else "Download completed"
    print(f"{status}: {result.output_path}", file=sys.stderr)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


async def cmd_summarize(args: argparse.Namespace) -> None:
    """Download, upload and summarize a Spaces recording."""
    orchestrator = FetchOrchestrator.from_settings(settings)
    try:
        result = await orchestrator.summarize_sync(
            args.url,
            prompt_type=args.prompt_type,
            custom_prompt=args.custom_prompt,
        )
    finally:
        await orchestrator.shutdown()

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        print(result["summary"])


def cmd_tail(args: argparse.Namespace) -> None:
    """Print a job log, optionally following new entries."""
    store = JobLogStore(Path(args.log_dir) if args.log_dir else settings.log_dir)
    path = store.path(args.job_id)
    if not path.is_file():
        print(f"Error: log file not found: {path}", file=sys.stderr)
        sys.exit(1)

    with open(path, encoding="utf-8") as f:
        for line in iter_log_lines(f, follow=args.follow, interval=args.interval):
            entry = store.parse_line(line.strip())
            if entry is not None:
                print(format_entry(entry), flush=True)


def iter_log_lines(f: TextIO, follow: bool = False, interval: float = 1.0) -> Iterator[str]:
    """Yield complete lines from a log file, waiting for more when following.

    A line the writer has not finished yet is held back until its newline
    arrives. Without ``follow``, a trailing unterminated line is yielded at
    end of file.
    """
    pending = ""
    while True:
        chunk = f.readline()
        if not chunk:
            if not follow:
                if pending:
                    yield pending
                return
            time.sleep(interval)
            continue
        pending += chunk
        if pending.endswith("\n"):
            yield pending
            pending = ""


def cmd_serve(args: argparse.Namespace) -> None:
    from spacecast.main import main as serve_main

    serve_main()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spacecast-cli",
        description="Download, cache and summarize Spaces audio",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    download = subparsers.add_parser("download", help="Download Spaces audio")
    download.add_argument("url", help="Spaces URL")

    summarize = subparsers.add_parser("summarize", help="Summarize a Spaces recording")
    summarize.add_argument("url", help="Spaces URL")
    summarize.add_argument("--prompt-type", default=None, help="Predefined prompt (default/formatted)")
    summarize.add_argument("--custom-prompt", default=None, help="Custom prompt text")
    summarize.add_argument("--json", action="store_true", help="Print the full result as JSON")

    tail = subparsers.add_parser("tail", help="Show a job log")
    tail.add_argument("job_id", help="Job ID")
    tail.add_argument("-f", "--follow", action="store_true", help="Keep printing new entries")
    tail.add_argument("--interval", type=float, default=1.0, help="Follow poll interval (seconds)")
    tail.add_argument("--log-dir", default=None, help="Log directory (default: LOG_DIR)")

    subparsers.add_parser("serve", help="Run the API server")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    from spacecast.main import configure_logging

    configure_logging()

    try:
        if args.command == "download":
            asyncio.run(cmd_download(args))
        elif args.command == "summarize":
            asyncio.run(cmd_summarize(args))
        elif args.command == "tail":
            cmd_tail(args)
        elif args.command == "serve":
            cmd_serve(args)
    except SpacecastError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
