"""File operation API routes."""

import asyncio
import mimetypes
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from common.constants import DEFAULT_LIST_LIMIT, MAX_BATCH_FILES
from receiver.config import ServerConfig
from receiver.dependencies import (
    get_catalog,
    get_config,
    get_ingest_service,
    get_store,
    get_tracker,
)
from receiver.schemas.common import ErrorResponse
from receiver.schemas.files import (
    BatchItemResult,
    BatchUploadResponse,
    DeleteFileResponse,
    FileRecordResponse,
    ListFilesResponse,
    UploadResponse,
    UploadStatusResponse,
)
from receiver.services.ingest_service import IngestService, UploadItem
from receiver.services.progress import UploadTracker
from receiver.storage.catalog import CatalogScanner
from receiver.storage.name_codec import decode
from receiver.storage.shard_store import DateShardStore, validate_shard_date

router = APIRouter(prefix="/api", tags=["Files"])


def _error(status_code: int, message: str, code: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, code=code).model_dump(),
    )


def content_disposition(filename: str) -> str:
    """
    Build an attachment header carrying a UTF-8 filename.

    Args:
        filename: Suggested download name, possibly non-ASCII

    Returns:
        Header value with an ASCII fallback and an RFC 5987 filename*
    """
    fallback = filename.encode('ascii', 'replace').decode('ascii')
    fallback = fallback.replace('?', '_').replace('"', '_').replace('\\', '_')
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    upload_id: Optional[str] = Form(None, alias="uploadId"),
    ingest: IngestService = Depends(get_ingest_service),
):
    """
    Upload a single file.

    Parameters:
        - file: File to upload (multipart/form-data)
        - uploadId: Optional client-chosen id for progress polling

    Returns:
        - file: Record of the stored file

    Raises:
        - 400: No file in the request
        - 413: File too large
        - 415: File type not allowed
        - 500: Storage error
        - 507: Disk full
    """
    if file is None:
        return _error(status.HTTP_400_BAD_REQUEST, "No file received", "NO_FILE")

    try:
        record = await asyncio.to_thread(
            ingest.ingest_one,
            file.filename or "",
            file.size,
            file.content_type,
            file.file,
            upload_id,
        )
    finally:
        await file.close()

    return UploadResponse(
        message="File uploaded successfully",
        file=FileRecordResponse.from_record(record),
    )


@router.post("/upload-multiple", response_model=BatchUploadResponse)
async def upload_multiple(
    files: Optional[List[UploadFile]] = File(None),
    ingest: IngestService = Depends(get_ingest_service),
):
    """
    Upload up to 10 files; each file succeeds or fails on its own.

    Parameters:
        - files: Files to upload (multipart/form-data, repeated field)

    Returns:
        - files: Records of the stored files
        - results: Per-file outcome in request order

    Raises:
        - 400: No files, or more than 10 files
    """
    if not files:
        return _error(status.HTTP_400_BAD_REQUEST, "No file received", "NO_FILE")

    if len(files) > MAX_BATCH_FILES:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            f"At most {MAX_BATCH_FILES} files per request, got {len(files)}",
            "TOO_MANY_FILES",
        )

    items = [
        UploadItem(name=f.filename or "", stream=f.file, size=f.size, content_type=f.content_type)
        for f in files
    ]

    try:
        outcomes = await asyncio.to_thread(ingest.ingest_batch, items)
    finally:
        for f in files:
            await f.close()

    results = [BatchItemResult.from_outcome(outcome) for outcome in outcomes]
    stored = [result.file for result in results if result.file is not None]

    return BatchUploadResponse(
        success=bool(stored),
        message=f"Uploaded {len(stored)} of {len(results)} files",
        files=stored,
        results=results,
    )


@router.get("/files", response_model=ListFilesResponse)
async def list_files(
    date: Optional[str] = Query(None, description="Day-shard to list (YYYY-MM-DD); all when omitted"),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, description="Maximum number of records"),
    catalog: CatalogScanner = Depends(get_catalog),
    config: ServerConfig = Depends(get_config),
):
    """
    List stored files, newest first.

    Parameters:
        - date: Optional day-shard
        - limit: Page size (default 50)

    Returns:
        - total: Number of files in scope
        - returned: Number of files in this response
        - files: File records sorted by time descending

    Raises:
        - 400: Date is not a valid YYYY-MM-DD day
    """
    if date:
        validate_shard_date(date)

    page = await asyncio.to_thread(catalog.list_files, date or None, limit)

    return ListFilesResponse(
        total=page.total,
        returned=page.returned,
        files=[FileRecordResponse.from_record(record) for record in page.files],
        save_path=str(config.save_path),
    )


@router.get("/download/{date}/{stored_name}")
async def download_file(
    date: str,
    stored_name: str,
    store: DateShardStore = Depends(get_store),
):
    """
    Download a stored file under its original name.

    Returns:
        - StreamingResponse with the file bytes

    Raises:
        - 400: Invalid path component
        - 404: File not found
    """
    size, pieces = await asyncio.to_thread(store.read, date, stored_name)

    decoded = decode(stored_name)
    download_name = decoded.original_name if decoded else stored_name
    media_type = mimetypes.guess_type(download_name)[0] or "application/octet-stream"

    return StreamingResponse(
        pieces,
        media_type=media_type,
        headers={
            "Content-Disposition": content_disposition(download_name),
            "Content-Length": str(size),
        },
    )


@router.delete("/files/{date}/{stored_name}", response_model=DeleteFileResponse)
async def delete_file(
    date: str,
    stored_name: str,
    store: DateShardStore = Depends(get_store),
):
    """
    Delete a stored file.

    Raises:
        - 400: Invalid path component
        - 404: File not found
        - 500: Storage error
    """
    await asyncio.to_thread(store.delete, date, stored_name)
    return DeleteFileResponse(message="File deleted")


@router.get("/uploads/{upload_id}", response_model=UploadStatusResponse)
async def upload_status(
    upload_id: str,
    tracker: UploadTracker = Depends(get_tracker),
):
    """
    Poll the progress of an upload by its id.

    Raises:
        - 404: Unknown or evicted upload id
    """
    status_obj = tracker.get(upload_id)
    if status_obj is None:
        return _error(status.HTTP_404_NOT_FOUND, f"Unknown upload id: {upload_id}", "UPLOAD_NOT_FOUND")

    return UploadStatusResponse(
        upload_id=status_obj.upload_id,
        name=status_obj.name,
        state=status_obj.state,
        total_bytes=status_obj.total_bytes,
        bytes_written=status_obj.bytes_written,
        fraction=status_obj.fraction,
        error=status_obj.error,
        file=FileRecordResponse.from_record(status_obj.record) if status_obj.record else None,
    )
