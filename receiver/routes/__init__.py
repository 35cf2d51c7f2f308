"""API routes package."""

from receiver.routes.file_routes import router as file_router
from receiver.routes.server_routes import router as server_router

__all__ = ["file_router", "server_router"]
