"""Manages day-sharded upload files on disk: write, read, list and delete."""

import errno
import logging
import os
import secrets
from datetime import date, datetime
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from common.constants import (
    PARTIAL_UPLOAD_PREFIX,
    PARTIAL_UPLOAD_SUFFIX,
    SHARD_DATE_FORMAT,
    STREAM_PIECE_SIZE,
)
from receiver.exceptions import (
    InvalidPathError,
    NotFoundError,
    StorageFullError,
    StorageIOError,
    TooLargeError,
)

logger = logging.getLogger(__name__)

_DISK_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, 'EDQUOT', errno.ENOSPC)}


def validate_component(component: str) -> str:
    """
    Reject a caller-supplied path component that could leave its directory.

    Args:
        component: Shard name or stored name

    Returns:
        The component unchanged

    Raises:
        InvalidPathError: If the component is empty, is '.' or '..', or
            contains a path separator or NUL byte
    """
    if not component or component in ('.', '..'):
        raise InvalidPathError(f"Invalid path component: {component!r}")

    forbidden = {'/', '\\', '\x00', os.sep}
    if os.altsep:
        forbidden.add(os.altsep)

    if any(sep in component for sep in forbidden):
        raise InvalidPathError(f"Invalid path component: {component!r}")

    return component


def validate_shard_date(shard_name: str) -> str:
    """
    Check that a caller-supplied shard name is a calendar date (YYYY-MM-DD).

    Raises:
        InvalidPathError: If the name is not a valid date in the shard format
    """
    validate_component(shard_name)
    try:
        parsed = datetime.strptime(shard_name, SHARD_DATE_FORMAT)
    except ValueError as e:
        raise InvalidPathError(f"Invalid date: {shard_name!r}, expected YYYY-MM-DD") from e
    if parsed.strftime(SHARD_DATE_FORMAT) != shard_name:
        raise InvalidPathError(f"Invalid date: {shard_name!r}, expected YYYY-MM-DD")
    return shard_name


def is_partial_upload(name: str) -> bool:
    """Return True for temporary files of writes that have not completed."""
    return name.startswith(PARTIAL_UPLOAD_PREFIX) and name.endswith(PARTIAL_UPLOAD_SUFFIX)


def shard_name_for(day: date) -> str:
    """Directory name for a calendar date (YYYY-MM-DD)."""
    return day.strftime(SHARD_DATE_FORMAT)


def translate_os_error(exc: OSError, action: str, target: str) -> Exception:
    """
    Map an OSError onto the receiver's exception taxonomy.

    Args:
        exc: Original OS error
        action: Verb for the message ("write", "delete", ...)
        target: Name of the file or directory involved

    Returns:
        Exception instance to raise
    """
    if isinstance(exc, FileNotFoundError):
        return NotFoundError(f"File not found: {target}")
    if exc.errno in _DISK_FULL_ERRNOS:
        return StorageFullError(f"No space left to {action} {target}")
    return StorageIOError(f"Failed to {action} {target}: {exc.strerror or exc}")


class DateShardStore:
    """
    Storage root holding one directory per calendar day.

    Layout: root/YYYY-MM-DD/{stored_name}. Writes land under a hidden
    temporary name first and are renamed into place once complete.
    """

    def __init__(self, root: Path):
        """
        Initialize the store.

        Args:
            root: Storage root directory (created if missing)
        """
        self.root = Path(root)
        self.ensure_root()

    def ensure_root(self) -> None:
        """Ensure the storage root exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def shard_for(self, day: date) -> Path:
        """
        Get the directory for a calendar date, creating it if absent.

        Safe under concurrent callers: an already existing directory is not an error.

        Args:
            day: Calendar date in the store's local time

        Returns:
            Path to the day-shard directory
        """
        shard_dir = self.root / shard_name_for(day)
        try:
            shard_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise translate_os_error(e, "create shard", shard_dir.name) from e
        return shard_dir

    def shard_path(self, shard_name: str) -> Path:
        """
        Resolve a caller-supplied shard name without creating it.

        Raises:
            InvalidPathError: If the name fails validation
        """
        return self.root / validate_component(shard_name)

    def file_path(self, shard_name: str, stored_name: str) -> Path:
        """
        Resolve a caller-supplied (shard, stored name) pair.

        Raises:
            InvalidPathError: If either component fails validation
        """
        return self.shard_path(shard_name) / validate_component(stored_name)

    def relative_path(self, path: Path) -> str:
        """Shard-relative POSIX path of a stored file."""
        return path.relative_to(self.root).as_posix()

    def write(
        self,
        shard_dir: Path,
        stored_name: str,
        stream: BinaryIO,
        max_bytes: Optional[int] = None,
    ) -> Path:
        """
        Stream data into shard_dir/stored_name atomically.

        Bytes go to a hidden temporary file in the same directory, are
        fsynced, then renamed over the final name. A file with the same
        stored name is replaced.

        Args:
            shard_dir: Directory returned by shard_for()
            stored_name: Encoded file name
            stream: Binary file-like object to read from
            max_bytes: Abort with TooLargeError once more bytes than this arrive

        Returns:
            Final path of the written file

        Raises:
            InvalidPathError: If stored_name fails validation
            TooLargeError: If the stream exceeds max_bytes
            StorageIOError: If the filesystem rejects the write
        """
        validate_component(stored_name)
        final_path = shard_dir / stored_name
        temp_path = shard_dir / (
            f"{PARTIAL_UPLOAD_PREFIX}{stored_name}.{secrets.token_hex(4)}{PARTIAL_UPLOAD_SUFFIX}"
        )

        written = 0
        try:
            with open(temp_path, 'xb') as f:
                while True:
                    piece = stream.read(STREAM_PIECE_SIZE)
                    if not piece:
                        break
                    written += len(piece)
                    if max_bytes is not None and written > max_bytes:
                        raise TooLargeError(
                            f"File exceeds maximum size of {max_bytes} bytes"
                        )
                    f.write(piece)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, final_path)
        except OSError as e:
            self._discard(temp_path)
            raise translate_os_error(e, "write", stored_name) from e
        except BaseException:
            self._discard(temp_path)
            raise

        logger.debug(f"Wrote {written} bytes to {final_path}")
        return final_path

    def read(self, shard_name: str, stored_name: str) -> tuple[int, Iterator[bytes]]:
        """
        Open a stored file and stream it in pieces.

        The file is opened before this returns, so a missing file raises
        here rather than mid-stream, and a concurrent delete cannot truncate
        a read already in progress.

        Args:
            shard_name: Day-shard directory name
            stored_name: Encoded file name

        Returns:
            Tuple of (size in bytes, iterator over byte pieces)

        Raises:
            InvalidPathError: If a component fails validation
            NotFoundError: If the file does not exist
            StorageIOError: If the file cannot be opened
        """
        path = self.file_path(shard_name, stored_name)
        if not path.is_file():
            raise NotFoundError(f"File not found: {shard_name}/{stored_name}")

        try:
            f = open(path, 'rb')
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            raise translate_os_error(e, "read", stored_name) from e

        def pieces() -> Iterator[bytes]:
            with f:
                while True:
                    piece = f.read(STREAM_PIECE_SIZE)
                    if not piece:
                        break
                    yield piece

        return size, pieces()

    def stat(self, shard_name: str, stored_name: str) -> os.stat_result:
        """
        Stat a stored file.

        Raises:
            NotFoundError: If the file does not exist or is not a regular file
        """
        path = self.file_path(shard_name, stored_name)
        try:
            st = path.stat()
        except OSError as e:
            raise translate_os_error(e, "stat", stored_name) from e
        if not path.is_file():
            raise NotFoundError(f"File not found: {shard_name}/{stored_name}")
        return st

    def delete(self, shard_name: str, stored_name: str) -> None:
        """
        Delete a stored file.

        Args:
            shard_name: Day-shard directory name
            stored_name: Encoded file name

        Raises:
            InvalidPathError: If a component fails validation
            NotFoundError: If the file does not exist
            StorageIOError: On permission or disk failures
        """
        path = self.file_path(shard_name, stored_name)
        if path.is_dir():
            raise NotFoundError(f"File not found: {shard_name}/{stored_name}")
        try:
            path.unlink()
        except OSError as e:
            raise translate_os_error(e, "delete", stored_name) from e
        logger.info(f"Deleted file {shard_name}/{stored_name}")

    def list_shards(self) -> list[str]:
        """
        List day-shard directory names, newest first.

        Only real directories directly under the root count; files and
        symlinks at the root level are ignored.
        """
        try:
            entries = list(os.scandir(self.root))
        except FileNotFoundError:
            return []
        except OSError as e:
            raise translate_os_error(e, "list", str(self.root)) from e

        shards = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    shards.append(entry.name)
            except OSError:
                continue
        return sorted(shards, reverse=True)

    def list_entries(self, shard_dir: Path) -> list[os.DirEntry]:
        """
        List direct regular-file children of a shard.

        Nested directories, symlinks and partial uploads are skipped. A
        missing shard yields an empty list.
        """
        try:
            entries = list(os.scandir(shard_dir))
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise translate_os_error(e, "list", shard_dir.name) from e

        files = []
        for entry in entries:
            if is_partial_upload(entry.name):
                continue
            try:
                if entry.is_file(follow_symlinks=False):
                    files.append(entry)
            except OSError:
                continue
        return files

    @staticmethod
    def _discard(temp_path: Path) -> None:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial upload {temp_path}: {e}")
