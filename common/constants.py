"""Project-wide constants (storage layout, size limits, default ports)."""

DEFAULT_STORAGE_PATH: str = "uploads"
DEFAULT_CONFIG_PATH: str = "server-config.json"

DEFAULT_MAX_FILE_SIZE: int = 100 * 1024 * 1024  # 100 MiB
ALLOW_ALL_TYPES: str = "*"

SALT_BYTES: int = 4
UPLOAD_ID_BYTES: int = 8
RECORD_ID_LENGTH: int = 16

SHARD_DATE_FORMAT: str = "%Y-%m-%d"
PARTIAL_UPLOAD_PREFIX: str = "."
PARTIAL_UPLOAD_SUFFIX: str = ".part"

STREAM_PIECE_SIZE: int = 64 * 1024
MAX_BATCH_FILES: int = 10
DEFAULT_LIST_LIMIT: int = 50

DEFAULT_SERVER_PORT: int = 3000
SERVER_VERSION: str = "1.0.0"
