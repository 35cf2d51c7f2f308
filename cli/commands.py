"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_SERVER_PORT
from common.logging_config import get_logger
from cli.config import Config
from cli.constants import CONFIG_DIR, CONFIG_FILE
from cli.models import (
    ConnectCommand,
    DeleteCommand,
    DownloadCommand,
    InfoCommand,
    ListCommand,
    StatsCommand,
    UploadCommand,
)
from cli.transfer_client import TransferClient

logger = get_logger(__name__)


_client: Optional[TransferClient] = None


def get_client() -> TransferClient:
    """
    Get or create global TransferClient instance.

    Returns:
        TransferClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new TransferClient instance")
        config = Config(Path.home() / CONFIG_DIR / CONFIG_FILE)
        _client = TransferClient(config)
    return _client


def handle_upload(cmd: UploadCommand, client: Optional[TransferClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file_list
        client: Optional TransferClient for dependency injection (testing)

    Returns:
        Per-file upload results
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} files")
    if client is None:
        client = get_client()
    if len(cmd.file_list) == 1:
        return client.upload(cmd.file_list[0])
    return client.upload_many(list(cmd.file_list))


def handle_list(cmd: ListCommand, client: Optional[TransferClient] = None) -> str:
    """
    Handle 'list' command.

    Args:
        cmd: ListCommand with optional date and limit
        client: Optional TransferClient for dependency injection (testing)

    Returns:
        Formatted list of files
    """
    logger.info(f"Executing list command: date={cmd.date} limit={cmd.limit}")
    if client is None:
        client = get_client()
    return client.list_files(cmd.date, cmd.limit)


def handle_download(cmd: DownloadCommand, client: Optional[TransferClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with date, stored_name and optional output_path
        client: Optional TransferClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: {cmd.date}/{cmd.stored_name} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    return client.download(cmd.date, cmd.stored_name, cmd.output_path)


def handle_delete(cmd: DeleteCommand, client: Optional[TransferClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.delete(cmd.date, cmd.stored_name)


def handle_stats(cmd: StatsCommand, client: Optional[TransferClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.stats()


def handle_info(cmd: InfoCommand, client: Optional[TransferClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.info()


def handle_connect(cmd: ConnectCommand, client: Optional[TransferClient] = None) -> str:
    """
    Handle 'connect' command.

    Args:
        cmd: ConnectCommand with host and optional port
        client: Optional TransferClient for dependency injection (testing)

    Returns:
        Confirmation with the new base URL
    """
    if client is None:
        client = get_client()
    port = cmd.port or DEFAULT_SERVER_PORT
    client.config.set_server(cmd.host, port)
    client.reconnect()
    logger.info(f"Switched receiver to {cmd.host}:{port}")
    return f"Now sending to {client.config.get_base_url()}"
