"""Rebuilds the logical file catalog by scanning day-shards and decoding names."""

import hashlib
import logging
import os
from typing import Optional

from common.constants import DEFAULT_LIST_LIMIT, RECORD_ID_LENGTH
from common.types import CatalogPage, FileRecord
from receiver.storage.name_codec import decode_or_fallback
from receiver.storage.shard_store import DateShardStore

logger = logging.getLogger(__name__)


def path_record_id(path: str) -> str:
    """
    Stable identifier derived from a file's absolute storage path.

    Args:
        path: Absolute path of the stored file

    Returns:
        First 16 hex characters of the path's MD5 digest
    """
    return hashlib.md5(path.encode('utf-8')).hexdigest()[:RECORD_ID_LENGTH]


class CatalogScanner:
    """
    Produces FileRecords from the filesystem alone.

    There is no index: every call walks the requested shards, so the
    catalog always reflects what is on disk.
    """

    def __init__(self, store: DateShardStore):
        self.store = store

    def scan(self, shard: Optional[str] = None) -> list[FileRecord]:
        """
        Scan one shard or all shards and return records newest first.

        Args:
            shard: Day-shard name, or None for every shard under the root

        Returns:
            Records sorted by created_at_millis descending

        Raises:
            InvalidPathError: If the shard name fails validation
        """
        shard_names = [shard] if shard is not None else self.store.list_shards()

        records = []
        for shard_name in shard_names:
            records.extend(self._scan_shard(shard_name))

        # Visit order is only an optimization; this sort defines the catalog order.
        records.sort(key=lambda r: (r.created_at_millis, r.stored_name), reverse=True)
        return records

    def list_files(self, shard: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT) -> CatalogPage:
        """
        Return the newest `limit` records plus the full count.

        The limit is applied after the complete sort, so the page always
        holds the most recent files across every scanned shard.
        """
        records = self.scan(shard)
        return CatalogPage(total=len(records), files=records[:max(limit, 0)])

    def _scan_shard(self, shard_name: str) -> list[FileRecord]:
        shard_dir = self.store.shard_path(shard_name)
        records = []

        for entry in self.store.list_entries(shard_dir):
            try:
                st = entry.stat(follow_symlinks=False)
            except FileNotFoundError:
                # Deleted between listing and stat
                continue
            except OSError as e:
                logger.warning(f"Skipping unreadable entry {shard_name}/{entry.name}: {e}")
                continue

            decoded = decode_or_fallback(entry.name, fallback_millis=int(st.st_mtime * 1000))
            full_path = os.path.abspath(entry.path)

            records.append(FileRecord(
                id=path_record_id(full_path),
                original_name=decoded.original_name,
                stored_name=entry.name,
                size=st.st_size,
                created_at_millis=decoded.timestamp_millis,
                relative_path=f"{shard_name}/{entry.name}",
            ))

        return records
