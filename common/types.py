"""Shared data type definitions (FileRecord, StorageStats, DecodedName)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.formatting import format_file_size


@dataclass(frozen=True)
class DecodedName:
    """
    Result of decoding a stored name.
    """
    timestamp_millis: int
    original_name: str


@dataclass(frozen=True)
class FileRecord:
    """
    Logical view of one stored file, derived from its stored name and stat data.
    """
    id: str
    original_name: str
    stored_name: str
    size: int
    created_at_millis: int
    relative_path: str

    @property
    def size_str(self) -> str:
        return format_file_size(self.size)

    @property
    def time_str(self) -> str:
        try:
            return datetime.fromtimestamp(self.created_at_millis / 1000).strftime("%Y-%m-%d %H:%M:%S")
        except (OverflowError, OSError, ValueError):
            return str(self.created_at_millis)

    @property
    def shard(self) -> str:
        return self.relative_path.split("/", 1)[0]


@dataclass(frozen=True)
class StorageStats:
    """
    Aggregate numbers for the whole storage root.
    """
    total_files: int
    total_bytes: int
    free_bytes: int


@dataclass(frozen=True)
class CatalogPage:
    """
    One page of the catalog plus the size of the full listing.
    """
    total: int
    files: list[FileRecord]

    @property
    def returned(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class BatchOutcome:
    """
    Per-item result of a batch upload.
    """
    index: int
    name: str
    record: Optional[FileRecord] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.record is not None
