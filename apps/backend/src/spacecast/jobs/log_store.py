"""Append-only, per-job audit trail persisted to disk.

Each job gets one file, ``<log_dir>/<job_id>.log``. The file starts with a
header block of ``#`` lines followed by one JSON object per log entry::

    # job_id: job_1718000000000_1a2b3c4d
    # created_at: 2024-06-10T08:53:20.000000+00:00
    {"timestamp": "...", "level": "info", "message": "Job created", "data": {...}}

Writes are best-effort: an I/O failure is reported through ``logging`` and
never raised to the caller.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from spacecast.errors import InvalidJobIdError
from spacecast.jobs.models import LogEntry, LogLevel, utcnow

logger = logging.getLogger(__name__)

_HEADER_PREFIX = "#"
_JOB_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class JobLogStore:
    """File-backed job log store."""

    def __init__(self, log_dir: Path) -> None:
        self.log_dir = Path(log_dir)

    def path(self, job_id: str) -> Path:
        """Return the log file location for a job.

        Raises:
            InvalidJobIdError: If the id could escape the log directory.
        """
        if not job_id or not _JOB_ID_PATTERN.match(job_id):
            raise InvalidJobIdError(f"Invalid job id: {job_id!r}")
        return self.log_dir / f"{job_id}.log"

    def exists(self, job_id: str) -> bool:
        try:
            return self.path(job_id).is_file()
        except InvalidJobIdError:
            return False

    def init(self, job_id: str, created_at: datetime | None = None) -> None:
        """Create the log file for a job with its header block."""
        created_at = created_at or utcnow()
        header = (
            f"{_HEADER_PREFIX} job_id: {job_id}\n"
            f"{_HEADER_PREFIX} created_at: {created_at.isoformat()}\n"
        )
        try:
            path = self.path(job_id)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(header, encoding="utf-8")
        except (OSError, InvalidJobIdError) as e:
            logger.error("Failed to initialize log for job %s: %s", job_id, e)

    def append(self, job_id: str, entry: LogEntry) -> None:
        """Append one entry as a single JSON line."""
        try:
            line = self._encode(entry)
            path = self.path(job_id)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except (OSError, InvalidJobIdError) as e:
            logger.error("Failed to write log entry for job %s: %s", job_id, e)

    def read_all(self, job_id: str) -> list[LogEntry]:
        """Parse the persisted log back into entries.

        Header lines and lines that do not decode to a valid entry are
        skipped.
        """
        raw = self.read_raw(job_id)
        if raw is None:
            return []

        entries: list[LogEntry] = []
        for lineno, line in enumerate(raw.splitlines(), 1):
            line = line.strip()
            if not line or line.startswith(_HEADER_PREFIX):
                continue
            entry = self.parse_line(line)
            if entry is None:
                logger.debug("Skipping malformed log line %d for job %s", lineno, job_id)
                continue
            entries.append(entry)
        return entries

    def read_raw(self, job_id: str) -> str | None:
        """Return the log file verbatim, or None if there is none."""
        try:
            return self.path(job_id).read_text(encoding="utf-8")
        except InvalidJobIdError:
            return None
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Failed to read log for job %s: %s", job_id, e)
            return None

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    @staticmethod
    def _encode(entry: LogEntry) -> str:
        record = entry.to_dict()
        try:
            return json.dumps(record, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            # e.g. circular references; keep the entry, lose the payload
            logger.warning("Dropping unserializable log data: %s", e)
            record.pop("data", None)
            return json.dumps(record, ensure_ascii=False)

    @staticmethod
    def parse_line(line: str) -> LogEntry | None:
        """Decode one JSON log line, or return None if it is not a valid entry."""
        try:
            record: Any = json.loads(line)
        except json.JSONDecodeError:
            return None
        if not isinstance(record, dict):
            return None

        message = record.get("message")
        if not isinstance(message, str):
            return None
        try:
            level = LogLevel(record.get("level"))
            timestamp = datetime.fromisoformat(record["timestamp"])
        except (KeyError, TypeError, ValueError):
            return None

        return LogEntry(
            timestamp=timestamp,
            level=level,
            message=message,
            data=record.get("data"),
        )


def format_entry(entry: LogEntry) -> str:
    """Render an entry as ``[<local-time>] [<LEVEL>] <message>`` for terminals.

    A ``data`` payload is printed on an indented ``Data:`` continuation line.
    """
    local_time = entry.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    text = f"[{local_time}] [{entry.level.value.upper()}] {entry.message}"
    if entry.data is not None:
        text += "\n    Data: " + json.dumps(entry.data, ensure_ascii=False, default=str)
    return text
