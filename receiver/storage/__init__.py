"""Filesystem-backed storage: name codec, day-shard store, catalog and stats."""

from receiver.storage.catalog import CatalogScanner
from receiver.storage.shard_store import DateShardStore
from receiver.storage.stats import StatsCollector

__all__ = [
    "CatalogScanner",
    "DateShardStore",
    "StatsCollector",
]
