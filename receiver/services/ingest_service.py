"""Ingest service: validates uploads and persists them into the day-shard store."""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Callable, Iterable, Optional

from common.constants import SALT_BYTES, UPLOAD_ID_BYTES
from common.types import BatchOutcome, FileRecord
from receiver.config import ServerConfig
from receiver.exceptions import TooLargeError, TransferError, UnsupportedTypeError
from receiver.services.progress import ProgressReader, UploadTracker
from receiver.storage import name_codec
from receiver.storage.shard_store import DateShardStore

logger = logging.getLogger(__name__)


@dataclass
class UploadItem:
    """
    One file of an upload request.
    """
    name: str
    stream: BinaryIO
    size: Optional[int] = None
    content_type: Optional[str] = None
    upload_id: Optional[str] = None


def generate_upload_id() -> str:
    """Random opaque identifier returned for a freshly ingested file."""
    return secrets.token_hex(UPLOAD_ID_BYTES)


def file_extension(name: str) -> str:
    """Lower-cased extension including the dot, '' if there is none."""
    return os.path.splitext(name or '')[1].lower()


class IngestService:
    def __init__(
        self,
        config: ServerConfig,
        store: DateShardStore,
        tracker: Optional[UploadTracker] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.store = store
        self.tracker = tracker
        self.clock = clock

    def validate(self, original_name: str, size: Optional[int]) -> None:
        """
        Check an upload against the configured limits before touching disk.

        Raises:
            TooLargeError: If size exceeds config.max_file_size
            UnsupportedTypeError: If the extension is not allowed
        """
        if size is not None and size > self.config.max_file_size:
            raise TooLargeError(
                f"File {original_name!r} is {size} bytes, maximum is {self.config.max_file_size}"
            )

        if not self.config.allows_all_types:
            ext = file_extension(original_name)
            if ext not in self.config.allow_types:
                raise UnsupportedTypeError(f"Unsupported file type: {ext or '(none)'}")

    def ingest_one(
        self,
        original_name: str,
        size: Optional[int],
        content_type_hint: Optional[str],
        stream: BinaryIO,
        upload_id: Optional[str] = None,
    ) -> FileRecord:
        """
        Validate and persist a single upload.

        Args:
            original_name: Name supplied by the uploader
            size: Declared size in bytes, None if unknown
            content_type_hint: Client-declared MIME type (informational)
            stream: Binary file-like object holding the content
            upload_id: Key for progress polling; generated if omitted

        Returns:
            FileRecord of the stored file with a freshly generated id

        Raises:
            TooLargeError: Declared or streamed size exceeds the limit
            UnsupportedTypeError: Extension not in the allowed list
            StorageIOError: The filesystem rejected the write
        """
        upload_id = upload_id or generate_upload_id()

        if self.tracker is not None:
            self.tracker.start(upload_id, original_name, size)

        received = 0

        def on_read(nbytes: int) -> None:
            nonlocal received
            received += nbytes
            if self.tracker is not None:
                self.tracker.advance(upload_id, nbytes)

        try:
            self.validate(original_name, size)

            timestamp_millis = int(self.clock() * 1000)
            salt = name_codec.generate_salt(SALT_BYTES)
            stored_name = name_codec.encode(original_name, timestamp_millis, salt)

            shard_dir = self.store.shard_for(datetime.fromtimestamp(timestamp_millis / 1000).date())

            final_path = self.store.write(
                shard_dir,
                stored_name,
                ProgressReader(stream, on_read),
                max_bytes=self.config.max_file_size,
            )
        except TransferError as e:
            logger.warning(f"Rejected upload {original_name!r} [upload_id={upload_id}]: {e}")
            if self.tracker is not None:
                self.tracker.fail(upload_id, str(e))
            raise
        except Exception as e:
            if self.tracker is not None:
                self.tracker.fail(upload_id, f"Internal error: {e}")
            raise

        record = FileRecord(
            id=generate_upload_id(),
            original_name=name_codec.sanitize_name(original_name),
            stored_name=stored_name,
            size=received,
            created_at_millis=timestamp_millis,
            relative_path=self.store.relative_path(final_path),
        )

        if self.tracker is not None:
            self.tracker.complete(upload_id, record)

        logger.info(
            f"Received file {record.original_name} ({record.size_str}) as {record.relative_path} "
            f"[upload_id={upload_id}] [content_type={content_type_hint or 'unknown'}]"
        )
        return record

    def ingest_batch(self, items: Iterable[UploadItem]) -> list[BatchOutcome]:
        """
        Ingest each item independently.

        A rejected or failed item is reported in its outcome and does not
        stop the others; files already stored stay on disk.

        Args:
            items: Upload items in request order

        Returns:
            One BatchOutcome per item, in the same order
        """
        outcomes = []
        for index, item in enumerate(items):
            try:
                record = self.ingest_one(
                    item.name, item.size, item.content_type, item.stream, upload_id=item.upload_id
                )
                outcomes.append(BatchOutcome(index=index, name=item.name, record=record))
            except TransferError as e:
                outcomes.append(BatchOutcome(index=index, name=item.name, error=str(e), code=e.code))
            except Exception as e:
                logger.error(f"Unexpected error ingesting {item.name!r} in batch: {e}", exc_info=True)
                outcomes.append(BatchOutcome(
                    index=index, name=item.name, error="Internal error while storing file", code=TransferError.code
                ))

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(f"Batch upload finished: {succeeded}/{len(outcomes)} files stored")
        return outcomes
