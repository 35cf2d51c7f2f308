"""Aggregates file counts, sizes and free space for the storage root."""

import logging
import os
import shutil

from common.types import StorageStats
from receiver.config import ServerConfig
from receiver.storage.shard_store import is_partial_upload

logger = logging.getLogger(__name__)


class StatsCollector:
    """
    Walks the whole storage root, nested directories included.
    """

    def __init__(self, config: ServerConfig):
        self.config = config

    @property
    def root(self):
        return self.config.save_path

    def collect(self) -> StorageStats:
        """
        Count files and bytes under the root and read free disk space.

        Returns:
            StorageStats snapshot
        """
        total_files = 0
        total_bytes = 0

        for dirpath, _dirnames, filenames in os.walk(self.root, onerror=self._log_walk_error):
            for name in filenames:
                if is_partial_upload(name):
                    continue
                path = os.path.join(dirpath, name)
                try:
                    st = os.stat(path, follow_symlinks=False)
                except OSError:
                    continue
                total_files += 1
                total_bytes += st.st_size

        return StorageStats(
            total_files=total_files,
            total_bytes=total_bytes,
            free_bytes=self.free_bytes(),
        )

    def free_bytes(self) -> int:
        """
        Free space on the filesystem holding the storage root.

        Returns:
            Free bytes, or 0 if the platform cannot report it
        """
        try:
            return shutil.disk_usage(self.root).free
        except (OSError, AttributeError) as e:
            logger.warning(f"Free space query failed for storage root: {e}")
            return 0

    @staticmethod
    def _log_walk_error(error: OSError) -> None:
        if not isinstance(error, FileNotFoundError):
            logger.warning(f"Skipping unreadable directory during stats walk: {error}")
