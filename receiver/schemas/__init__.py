"""Pydantic schemas for API requests and responses."""

from receiver.schemas.common import ErrorResponse
from receiver.schemas.files import (
    BatchItemResult,
    BatchUploadResponse,
    DeleteFileResponse,
    FileRecordResponse,
    ListFilesResponse,
    UploadResponse,
    UploadStatusResponse,
)
from receiver.schemas.server import (
    HealthResponse,
    ServerInfo,
    ServerInfoResponse,
    Stats,
    StatsConfig,
    StatsResponse,
)

__all__ = [
    "BatchItemResult",
    "BatchUploadResponse",
    "DeleteFileResponse",
    "ErrorResponse",
    "FileRecordResponse",
    "HealthResponse",
    "ListFilesResponse",
    "ServerInfo",
    "ServerInfoResponse",
    "Stats",
    "StatsConfig",
    "StatsResponse",
    "UploadResponse",
    "UploadStatusResponse",
]
