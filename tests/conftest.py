"""Shared pytest fixtures for all tests."""

import io
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from cli.config import Config
from receiver.config import ServerConfig
from receiver.main import create_app
from receiver.services.ingest_service import IngestService
from receiver.services.progress import UploadTracker
from receiver.storage.catalog import CatalogScanner
from receiver.storage.shard_store import DateShardStore, shard_name_for

FIXED_NOW = 1704067200.0  # 2024-01-01T00:00:00Z


class FakeClock:
    """Deterministic clock; advance() moves it forward in seconds."""

    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def local_shard(epoch_seconds: float) -> str:
    """Day-shard name the store uses for a given instant."""
    return shard_name_for(datetime.fromtimestamp(epoch_seconds).date())


@pytest.fixture
def server_config(tmp_path):
    """
    Receiver configuration rooted in a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        ServerConfig with a 1 MiB size limit and all types allowed
    """
    return ServerConfig(
        computer_name='test-box',
        save_path=tmp_path / 'uploads',
        max_file_size=1024 * 1024,
    )


@pytest.fixture
def store(server_config):
    return DateShardStore(server_config.save_path)


@pytest.fixture
def catalog(store):
    return CatalogScanner(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def shard_of():
    """Function mapping epoch seconds to the local day-shard name."""
    return local_shard


@pytest.fixture
def tracker():
    return UploadTracker()


@pytest.fixture
def ingest(server_config, store, tracker, clock):
    """Ingest service with a fixed clock and a progress tracker."""
    return IngestService(server_config, store, tracker=tracker, clock=clock)


@pytest.fixture
def app(server_config):
    return create_app(server_config)


@pytest.fixture
def api_client(app):
    """
    FastAPI TestClient bound to a fresh receiver application.

    Args:
        app: Application fixture

    Returns:
        TestClient instance
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_stream():
    """Factory for in-memory upload streams."""
    def _make(content: bytes) -> io.BytesIO:
        return io.BytesIO(content)
    return _make


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary CLI config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .landrop directory
    """
    config_dir = tmp_path / '.landrop'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary CLI config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing batch uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
