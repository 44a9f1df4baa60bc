"""Services module for spacecast."""

from spacecast.services.cache import FingerprintCache, fingerprint
from spacecast.services.downloader import DownloadResult, YtDlpDownloader
from spacecast.services.file_upload import GeminiFileUploader, UploadedFile
from spacecast.services.interfaces import ISummarizationService, IUploadService
from spacecast.services.orchestrator import FetchOrchestrator
from spacecast.services.summarization import GeminiSummarizer

__all__ = [
    "DownloadResult",
    "FetchOrchestrator",
    "FingerprintCache",
    "GeminiFileUploader",
    "GeminiSummarizer",
    "ISummarizationService",
    "IUploadService",
    "UploadedFile",
    "YtDlpDownloader",
    "fingerprint",
]
