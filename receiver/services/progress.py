"""Polling status objects for uploads, keyed by upload id."""

import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import BinaryIO, Callable, Optional

from common.types import FileRecord

RECEIVING = "receiving"
COMPLETE = "complete"
FAILED = "failed"


@dataclass(frozen=True)
class UploadStatus:
    """
    Snapshot of one upload's progress.
    """
    upload_id: str
    name: str
    total_bytes: Optional[int]
    bytes_written: int = 0
    state: str = RECEIVING
    error: Optional[str] = None
    record: Optional[FileRecord] = None

    @property
    def fraction(self) -> Optional[float]:
        if not self.total_bytes:
            return 1.0 if self.state == COMPLETE else None
        return min(self.bytes_written / self.total_bytes, 1.0)

    @property
    def finished(self) -> bool:
        return self.state in (COMPLETE, FAILED)


class UploadTracker:
    """
    Thread-safe registry of upload statuses.

    Keeps at most max_entries statuses; when full, the oldest finished
    upload is evicted first, then the oldest overall.
    """

    def __init__(self, max_entries: int = 256):
        self.max_entries = max_entries
        self._statuses: "OrderedDict[str, UploadStatus]" = OrderedDict()
        self._lock = threading.Lock()

    def start(self, upload_id: str, name: str, total_bytes: Optional[int]) -> UploadStatus:
        status = UploadStatus(upload_id=upload_id, name=name, total_bytes=total_bytes)
        with self._lock:
            self._statuses[upload_id] = status
            self._statuses.move_to_end(upload_id)
            self._evict()
        return status

    def advance(self, upload_id: str, nbytes: int) -> None:
        with self._lock:
            status = self._statuses.get(upload_id)
            if status is not None:
                self._statuses[upload_id] = replace(status, bytes_written=status.bytes_written + nbytes)

    def complete(self, upload_id: str, record: FileRecord) -> None:
        with self._lock:
            status = self._statuses.get(upload_id)
            if status is not None:
                self._statuses[upload_id] = replace(
                    status, state=COMPLETE, record=record, bytes_written=record.size
                )

    def fail(self, upload_id: str, reason: str) -> None:
        with self._lock:
            status = self._statuses.get(upload_id)
            if status is not None:
                self._statuses[upload_id] = replace(status, state=FAILED, error=reason)

    def get(self, upload_id: str) -> Optional[UploadStatus]:
        with self._lock:
            return self._statuses.get(upload_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._statuses)

    def _evict(self) -> None:
        while len(self._statuses) > self.max_entries:
            victim = next(
                (uid for uid, status in self._statuses.items() if status.finished),
                next(iter(self._statuses)),
            )
            del self._statuses[victim]


class ProgressReader:
    """File-like wrapper that reports every read to a callback."""

    def __init__(self, stream: BinaryIO, on_read: Callable[[int], None]):
        self._stream = stream
        self._on_read = on_read

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self._on_read(len(chunk))
        return chunk
