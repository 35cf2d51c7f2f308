"""Configuration settings for the receiver server."""

import json
import logging
import os
import socket
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Optional

from common.constants import (
    ALLOW_ALL_TYPES,
    DEFAULT_CONFIG_PATH,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_SERVER_PORT,
    DEFAULT_STORAGE_PATH,
)

logger = logging.getLogger(__name__)


SERVER_HOST = os.environ.get("DROP_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("DROP_PORT", str(DEFAULT_SERVER_PORT)))

CONFIG_PATH = os.environ.get("DROP_CONFIG_PATH", DEFAULT_CONFIG_PATH)

STORAGE_PATH_OVERRIDE = os.environ.get("DROP_STORAGE_PATH")


def normalize_allow_types(allow_types) -> tuple[str, ...]:
    """
    Normalize allowed extensions to lower case with a leading dot.

    Args:
        allow_types: Iterable of extensions such as ["pdf", ".JPG"] or ["*"]

    Returns:
        Tuple of normalized extensions, or ("*",) when any entry is the wildcard
    """
    if isinstance(allow_types, str) or not hasattr(allow_types, '__iter__'):
        raise ValueError(f"allowTypes must be a list, got {allow_types!r}")

    normalized = []
    for ext in allow_types:
        ext = str(ext).strip().lower()
        if not ext:
            continue
        if ext == ALLOW_ALL_TYPES:
            return (ALLOW_ALL_TYPES,)
        if not ext.startswith('.'):
            ext = f".{ext}"
        normalized.append(ext)

    if not normalized:
        raise ValueError("allowTypes must contain at least one extension or '*'")

    return tuple(normalized)


@dataclass(frozen=True)
class ServerConfig:
    """
    Receiver configuration passed explicitly to the services that need it.
    """
    computer_name: str = field(default_factory=socket.gethostname)
    save_path: Path = field(default_factory=lambda: Path(DEFAULT_STORAGE_PATH).resolve())
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    allow_types: tuple[str, ...] = (ALLOW_ALL_TYPES,)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        if self.max_file_size < 0:
            raise ValueError("maxFileSize cannot be negative")
        object.__setattr__(self, 'save_path', Path(self.save_path).resolve())
        object.__setattr__(self, 'allow_types', normalize_allow_types(self.allow_types))

    @property
    def allows_all_types(self) -> bool:
        return self.allow_types == (ALLOW_ALL_TYPES,)

    def to_dict(self) -> dict:
        """Serialize using the on-disk camelCase keys."""
        return {
            "computerName": self.computer_name,
            "savePath": str(self.save_path),
            "maxFileSize": self.max_file_size,
            "allowTypes": list(self.allow_types),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ServerConfig':
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")
        defaults = cls()
        return cls(
            computer_name=data.get("computerName", defaults.computer_name),
            save_path=Path(data.get("savePath", defaults.save_path)),
            max_file_size=int(data.get("maxFileSize", defaults.max_file_size)),
            allow_types=data.get("allowTypes", list(defaults.allow_types)),
            created_at=data.get("createdAt", defaults.created_at),
        )


def load_config(config_path: Optional[Path] = None) -> ServerConfig:
    """
    Load configuration from a JSON file, writing defaults if it does not exist.

    Args:
        config_path: Path to the JSON config file (defaults to DROP_CONFIG_PATH)

    Returns:
        ServerConfig instance

    Raises:
        ValueError: If the file holds invalid values
    """
    config_path = Path(config_path or CONFIG_PATH)

    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Config file {config_path} is not valid JSON ({e}), using defaults")
            config = ServerConfig()
        else:
            if isinstance(data, dict):
                config = ServerConfig.from_dict(data)
                logger.info(f"Loaded config from {config_path}")
            else:
                logger.warning(f"Config file {config_path} does not hold a JSON object, using defaults")
                config = ServerConfig()
    else:
        config = ServerConfig()
        logger.info(f"Config file not found at {config_path}, writing defaults")
        save_config(config, config_path)

    if STORAGE_PATH_OVERRIDE:
        config = replace(config, save_path=Path(STORAGE_PATH_OVERRIDE))

    return config


def save_config(config: ServerConfig, config_path: Path) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration to persist
        config_path: Destination path
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        logger.warning(f"Could not write config file {config_path}: {e}")
