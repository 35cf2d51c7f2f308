"""Pydantic schemas for file operation endpoints."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from common.types import BatchOutcome, FileRecord


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileRecordResponse(CamelModel):
    """Response model for one stored file."""
    id: str
    name: str
    saved_name: str
    size: int
    size_str: str
    path: str
    time: int
    time_str: str

    @classmethod
    def from_record(cls, record: FileRecord) -> 'FileRecordResponse':
        return cls(
            id=record.id,
            name=record.original_name,
            saved_name=record.stored_name,
            size=record.size,
            size_str=record.size_str,
            path=record.relative_path,
            time=record.created_at_millis,
            time_str=record.time_str,
        )


class UploadResponse(CamelModel):
    """Response model for single file upload."""
    success: bool = True
    message: str
    file: FileRecordResponse


class BatchItemResult(CamelModel):
    """Per-file result inside a batch upload response."""
    index: int
    name: str
    success: bool
    file: Optional[FileRecordResponse] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: BatchOutcome) -> 'BatchItemResult':
        return cls(
            index=outcome.index,
            name=outcome.name,
            success=outcome.success,
            file=FileRecordResponse.from_record(outcome.record) if outcome.record else None,
            error=outcome.error,
            code=outcome.code,
        )


class BatchUploadResponse(CamelModel):
    """Response model for multi-file upload."""
    success: bool
    message: str
    files: List[FileRecordResponse]
    results: List[BatchItemResult]


class ListFilesResponse(CamelModel):
    """Response model for file listing."""
    success: bool = True
    total: int
    returned: int
    files: List[FileRecordResponse]
    save_path: str


class DeleteFileResponse(CamelModel):
    """Response model for file deletion."""
    success: bool = True
    message: str


class UploadStatusResponse(CamelModel):
    """Response model for upload progress polling."""
    success: bool = True
    upload_id: str
    name: str
    state: str
    total_bytes: Optional[int] = None
    bytes_written: int
    fraction: Optional[float] = None
    error: Optional[str] = None
    file: Optional[FileRecordResponse] = None
