"""Service layer for upload orchestration."""

from receiver.services.ingest_service import IngestService, UploadItem
from receiver.services.progress import UploadTracker

__all__ = [
    "IngestService",
    "UploadItem",
    "UploadTracker",
]
