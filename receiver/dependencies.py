"""FastAPI dependencies exposing the per-application service instances."""

from fastapi import Request

from receiver.config import ServerConfig
from receiver.services.ingest_service import IngestService
from receiver.services.progress import UploadTracker
from receiver.storage.catalog import CatalogScanner
from receiver.storage.shard_store import DateShardStore
from receiver.storage.stats import StatsCollector


def get_config(request: Request) -> ServerConfig:
    return request.app.state.config


def get_store(request: Request) -> DateShardStore:
    return request.app.state.store


def get_catalog(request: Request) -> CatalogScanner:
    return request.app.state.catalog


def get_ingest_service(request: Request) -> IngestService:
    return request.app.state.ingest


def get_stats_collector(request: Request) -> StatsCollector:
    return request.app.state.stats


def get_tracker(request: Request) -> UploadTracker:
    return request.app.state.tracker


def get_started_at(request: Request) -> float:
    return request.app.state.started_at
