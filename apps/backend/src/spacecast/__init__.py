"""spacecast - download, cache and summarize Spaces audio."""

__version__ = "0.1.0"
