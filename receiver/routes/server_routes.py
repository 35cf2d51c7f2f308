"""Server information, statistics and health routes."""

import asyncio
import time
from datetime import datetime

from fastapi import APIRouter, Depends

from common.constants import SERVER_VERSION
from common.formatting import format_file_size, format_uptime
from receiver.config import ServerConfig
from receiver.dependencies import get_config, get_started_at, get_stats_collector
from receiver.schemas.server import (
    HealthResponse,
    ServerInfo,
    ServerInfoResponse,
    Stats,
    StatsConfig,
    StatsResponse,
)
from receiver.storage.stats import StatsCollector

router = APIRouter(prefix="/api", tags=["Server"])


@router.get("/info", response_model=ServerInfoResponse)
async def server_info(
    config: ServerConfig = Depends(get_config),
    started_at: float = Depends(get_started_at),
):
    """
    Identity and limits of this receiver, used by clients to check the connection.
    """
    return ServerInfoResponse(
        server=ServerInfo(
            name=config.computer_name,
            version=SERVER_VERSION,
            max_file_size=config.max_file_size,
            save_path=str(config.save_path),
            uptime=time.time() - started_at,
        )
    )


@router.get("/stats", response_model=StatsResponse)
async def server_stats(
    collector: StatsCollector = Depends(get_stats_collector),
    config: ServerConfig = Depends(get_config),
    started_at: float = Depends(get_started_at),
):
    """
    Total files, total bytes and free disk space of the storage root.
    """
    snapshot = await asyncio.to_thread(collector.collect)

    return StatsResponse(
        stats=Stats(
            total_files=snapshot.total_files,
            total_size=snapshot.total_bytes,
            total_size_str=format_file_size(snapshot.total_bytes),
            free_space=snapshot.free_bytes,
            free_space_str=format_file_size(snapshot.free_bytes),
            save_path=str(config.save_path),
            server_uptime=format_uptime(time.time() - started_at),
            config=StatsConfig(
                computer_name=config.computer_name,
                max_file_size=config.max_file_size,
                max_file_size_str=format_file_size(config.max_file_size),
            ),
        )
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(started_at: float = Depends(get_started_at)):
    """
    Health check endpoint for liveness probes.
    """
    return HealthResponse(
        status="healthy",
        time=datetime.now().isoformat(),
        uptime=time.time() - started_at,
    )
