"""Entry point for the receiver service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.constants import SERVER_VERSION
from common.formatting import format_file_size
from common.logging_config import get_logger, setup_logging
from receiver.config import SERVER_HOST, SERVER_PORT, ServerConfig, load_config
from receiver.exceptions import (
    InvalidPathError,
    NotFoundError,
    StorageFullError,
    StorageIOError,
    TooLargeError,
    TransferError,
    UnsupportedTypeError,
)
from receiver.routes.file_routes import router as file_router
from receiver.routes.server_routes import router as server_router
from receiver.services.ingest_service import IngestService
from receiver.services.progress import UploadTracker
from receiver.storage.catalog import CatalogScanner
from receiver.storage.shard_store import DateShardStore
from receiver.storage.stats import StatsCollector

logger = get_logger('receiver.main')


def _error_body(exc: TransferError) -> dict:
    return {"success": False, "error": str(exc), "code": exc.code}


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    client_host = request.client.host if request.client else "unknown"

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}] [client={client_host}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def invalid_path_handler(request: Request, exc: InvalidPathError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid path error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(exc))


async def not_found_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"File not found error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_error_body(exc))


async def too_large_handler(request: Request, exc: TooLargeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"File too large error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, content=_error_body(exc))


async def unsupported_type_handler(request: Request, exc: UnsupportedTypeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Unsupported type error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, content=_error_body(exc))


async def storage_full_handler(request: Request, exc: StorageFullError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage full error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(status_code=status.HTTP_507_INSUFFICIENT_STORAGE, content=_error_body(exc))


async def storage_io_handler(request: Request, exc: StorageIOError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage I/O error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body(exc))


async def transfer_exception_handler(request: Request, exc: TransferError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Transfer exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body(exc))


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the FastAPI application around one storage root.

    Args:
        config: Receiver configuration; loaded from DROP_CONFIG_PATH when omitted

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = load_config()

    setup_logging('receiver', redact_root=str(config.save_path))

    app = FastAPI(
        title="LAN File Drop Receiver",
        description="Receives files from local-network clients and stores them in day folders",
        version=SERVER_VERSION,
    )

    store = DateShardStore(config.save_path)
    tracker = UploadTracker()

    app.state.config = config
    app.state.store = store
    app.state.tracker = tracker
    app.state.catalog = CatalogScanner(store)
    app.state.ingest = IngestService(config, store, tracker=tracker)
    app.state.stats = StatsCollector(config)
    app.state.started_at = time.time()

    app.middleware("http")(log_requests)

    app.add_exception_handler(InvalidPathError, invalid_path_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(TooLargeError, too_large_handler)
    app.add_exception_handler(UnsupportedTypeError, unsupported_type_handler)
    app.add_exception_handler(StorageFullError, storage_full_handler)
    app.add_exception_handler(StorageIOError, storage_io_handler)
    app.add_exception_handler(TransferError, transfer_exception_handler)

    app.include_router(file_router)
    app.include_router(server_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for a quick liveness check.
        """
        return {"message": "LAN File Drop Receiver", "status": "running"}

    logger.info(
        f"Receiver ready: name={config.computer_name} storage={config.save_path} "
        f"max_file_size={format_file_size(config.max_file_size)} allow_types={','.join(config.allow_types)}"
    )

    return app


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "receiver.main:create_app",
        factory=True,
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
