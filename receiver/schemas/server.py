"""Pydantic schemas for server information endpoints."""

from receiver.schemas.files import CamelModel


class ServerInfo(CamelModel):
    """Identity and limits of this receiver."""
    name: str
    version: str
    max_file_size: int
    save_path: str
    uptime: float


class ServerInfoResponse(CamelModel):
    """Response model for server info."""
    success: bool = True
    server: ServerInfo


class StatsConfig(CamelModel):
    """Configuration excerpt included in stats."""
    computer_name: str
    max_file_size: int
    max_file_size_str: str


class Stats(CamelModel):
    """Storage statistics."""
    total_files: int
    total_size: int
    total_size_str: str
    free_space: int
    free_space_str: str
    save_path: str
    server_uptime: str
    config: StatsConfig


class StatsResponse(CamelModel):
    """Response model for storage statistics."""
    success: bool = True
    stats: Stats


class HealthResponse(CamelModel):
    """Response model for health checks."""
    status: str
    time: str
    uptime: float
