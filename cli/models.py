"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload local files."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    """List received files, optionally limited to one day."""

    date: str | None = None
    limit: int | None = None
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class DownloadCommand:
    """Download a stored file."""

    date: str
    stored_name: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a stored file."""

    date: str
    stored_name: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class StatsCommand:
    """Show storage statistics."""

    command: Literal["stats"] = "stats"


@dataclass(frozen=True)
class InfoCommand:
    """Show receiver identity."""

    command: Literal["info"] = "info"


@dataclass(frozen=True)
class ConnectCommand:
    """Point the CLI at another receiver."""

    host: str
    port: int | None = None
    command: Literal["connect"] = "connect"


CommandRequest = (
    UploadCommand
    | ListCommand
    | DownloadCommand
    | DeleteCommand
    | StatsCommand
    | InfoCommand
    | ConnectCommand
)
