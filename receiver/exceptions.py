"""Custom exception classes for the receiver."""


class TransferError(Exception):
    """
    Base exception class for all file transfer errors.
    """
    code = "INTERNAL_ERROR"


class InvalidPathError(TransferError):
    """
    Raised when a caller-supplied path component could escape its shard.
    """
    code = "INVALID_PATH"


class NotFoundError(TransferError):
    """
    Raised when a requested stored file does not exist.
    """
    code = "FILE_NOT_FOUND"


class TooLargeError(TransferError):
    """
    Raised when an upload exceeds the configured maximum file size.
    """
    code = "FILE_TOO_LARGE"


class UnsupportedTypeError(TransferError):
    """
    Raised when an upload's extension is not in the allowed type list.
    """
    code = "UNSUPPORTED_TYPE"


class StorageIOError(TransferError):
    """
    Raised when the filesystem rejects a write, read or delete.
    """
    code = "STORAGE_IO_ERROR"


class StorageFullError(StorageIOError):
    """
    Raised when the disk holding the storage root has no space left.
    """
    code = "STORAGE_FULL"
