"""Command parser for CLI input."""

import shlex

from common.constants import MAX_BATCH_FILES
from cli.models import (
    CommandRequest,
    ConnectCommand,
    DeleteCommand,
    DownloadCommand,
    InfoCommand,
    ListCommand,
    StatsCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Upload/List/Download/Delete/Stats/Info/Connect)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "list":
        return _parse_list(tokens[1:])
    elif command_name == "download":
        return _parse_download(tokens[1:])
    elif command_name == "delete":
        return _parse_delete(tokens[1:])
    elif command_name == "stats":
        return _parse_no_args(tokens[1:], "stats", StatsCommand)
    elif command_name == "info":
        return _parse_no_args(tokens[1:], "info", InfoCommand)
    elif command_name == "connect":
        return _parse_connect(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <file> [file ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file")
    if len(args) > MAX_BATCH_FILES:
        raise ParseError(f"upload accepts at most {MAX_BATCH_FILES} files at once")

    return UploadCommand(file_list=tuple(args))


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list [date] [--limit N]' command."""
    date = None
    limit = None
    remaining = list(args)

    if "--limit" in remaining:
        index = remaining.index("--limit")
        if index + 1 >= len(remaining):
            raise ParseError("--limit requires a number")
        limit = _parse_positive_int(remaining[index + 1], "--limit")
        del remaining[index:index + 2]

    if len(remaining) > 1:
        raise ParseError("list accepts at most one date: list [date] [--limit N]")
    if remaining:
        date = remaining[0]

    return ListCommand(date=date, limit=limit)


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <date> <stored-name> [output_path]' command."""
    if len(args) not in (2, 3):
        raise ParseError("download requires 2 or 3 arguments: <date> <stored-name> [output_path]")

    output_path = args[2] if len(args) == 3 else None
    return DownloadCommand(date=args[0], stored_name=args[1], output_path=output_path)


def _parse_delete(args: list[str]) -> DeleteCommand:
    """Parse 'delete <date> <stored-name>' command."""
    if len(args) != 2:
        raise ParseError("delete requires exactly 2 arguments: <date> <stored-name>")

    return DeleteCommand(date=args[0], stored_name=args[1])


def _parse_connect(args: list[str]) -> ConnectCommand:
    """Parse 'connect <host> [port]' command."""
    if len(args) not in (1, 2):
        raise ParseError("connect requires 1 or 2 arguments: <host> [port]")

    port = _parse_positive_int(args[1], "port") if len(args) == 2 else None
    return ConnectCommand(host=args[0], port=port)


def _parse_no_args(args: list[str], name: str, command_type):
    if args:
        raise ParseError(f"{name} takes no arguments")
    return command_type()


def _parse_positive_int(value: str, label: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ParseError(f"{label} must be a number, got '{value}'")
    if number < 1:
        raise ParseError(f"{label} must be at least 1")
    return number
