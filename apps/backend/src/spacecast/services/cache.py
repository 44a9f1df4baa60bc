"""Locator-keyed artifact cache on the local filesystem."""

import hashlib
from pathlib import Path

AUDIO_EXTENSION = "mp3"


def fingerprint(locator: str) -> str:
    """Compute the cache key for a source locator.

    The key is derived from the locator string only, never from the
    fetched content, so two URLs for the same audio are cached separately.

    Args:
        locator: Source URL as submitted by the caller.

    Returns:
        SHA256 hex digest (64 lowercase hex characters).
    """
    return hashlib.sha256(locator.encode("utf-8")).hexdigest()


class FingerprintCache:
    """Maps locators to ``<output_dir>/<fingerprint>.mp3``.

    The file's existence is the only record; there is no index.
    """

    def __init__(self, output_dir: Path, extension: str = AUDIO_EXTENSION) -> None:
        self.output_dir = Path(output_dir)
        self.extension = extension.lstrip(".")

    def artifact_path(self, locator: str) -> Path:
        """Return the conventional artifact path whether or not it exists."""
        return self.output_dir / f"{fingerprint(locator)}.{self.extension}"

    def lookup(self, locator: str) -> Path | None:
        """Return the cached artifact path, or None on a miss."""
        path = self.artifact_path(locator)
        if path.is_file():
            return path
        return None

    def ensure_dir(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
