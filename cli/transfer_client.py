"""HTTP client for communicating with the receiver service."""

import os
import re
import secrets
import sys
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

import httpx

from common.formatting import format_file_size
from common.logging_config import get_logger
from cli.config import Config
from cli.constants import DOWNLOAD_PIECE_SIZE, GREEN, RESET
from cli.utils import ProgressFileWrapper, clear_progress_line

logger = get_logger(__name__)

_FILENAME_STAR = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_FILENAME_PLAIN = re.compile(r'filename="([^"]*)"', re.IGNORECASE)


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the suggested file name from a Content-Disposition header.

    Args:
        header: Raw header value, may be None

    Returns:
        Decoded name without any directory part, or None if absent
    """
    if not header:
        return None

    match = _FILENAME_STAR.search(header)
    if match:
        name = unquote(match.group(1).strip())
    else:
        match = _FILENAME_PLAIN.search(header)
        if not match:
            return None
        name = match.group(1)

    name = Path(name.replace('\\', '/')).name
    if name in ('', '.', '..'):
        return None
    return name


class TransferClient:
    """HTTP client for the receiver API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize transfer client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized TransferClient [base_url={config.get_base_url()}]")

    def reconnect(self) -> None:
        """Rebuild the HTTP session after the configured server changed."""
        self.session.close()
        self.session = httpx.Client(
            base_url=self.config.get_base_url(),
            timeout=self.config.get_timeout()
        )
        logger.info(f"Reconnected TransferClient [base_url={self.config.get_base_url()}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Args:
            file_size: File size in bytes

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        base_timeout = 30.0
        size_mb = file_size / (1024 * 1024)
        return base_timeout + size_mb * 0.1

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Receiver may be overloaded.")
        if last_exception is not None:
            raise ConnectionError("Cannot connect to receiver. Is it running?")
        raise ConnectionError("Max retries exceeded")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('error') or error_data.get('detail') or 'Unknown error'
            code = error_data.get('code') or 'UNKNOWN'
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'NO_FILE': 'No file was received by the server.',
            'TOO_MANY_FILES': 'Too many files in one upload; send at most 10 at a time.',
            'INVALID_PATH': 'Invalid date or file name.',
            'FILE_NOT_FOUND': 'File not found on receiver.',
            'FILE_TOO_LARGE': 'File exceeds the receiver size limit.',
            'UNSUPPORTED_TYPE': 'File type is not allowed by the receiver.',
            'STORAGE_FULL': 'Receiver disk is full. Please free some space.',
            'STORAGE_IO_ERROR': 'Receiver could not access its storage.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            413: 'File too large',
            415: 'Unsupported file type',
            422: 'Invalid request',
            500: 'Server error',
            503: 'Service unavailable',
            507: 'Insufficient storage',
        }

        message = status_messages.get(response.status_code, str(detail))
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _describe_record(self, record: dict) -> str:
        return (
            f"  - {record['name']}\n"
            f"    Stored as: {record['path']}\n"
            f"    Size: {record['sizeStr']}\n"
            f"    Received: {record['timeStr']}"
        )

    def _check_local_file(self, file_path: str) -> Optional[str]:
        if not os.path.exists(file_path):
            return f"File not found: {file_path}"
        if not os.path.isfile(file_path):
            return f"Not a file: {file_path}"
        return None

    def upload(self, file_path: str) -> str:
        """
        Upload one local file with progress feedback.

        Args:
            file_path: Path of the file to send

        Returns:
            Formatted result message
        """
        error = self._check_local_file(file_path)
        if error:
            return f"Error: {error}"

        file_size = os.path.getsize(file_path)
        filename = os.path.basename(file_path)
        upload_timeout = self._calculate_upload_timeout(file_size)
        upload_id = uuid.uuid4().hex

        logger.info(f"Uploading {filename} size={file_size} [upload_id={upload_id}]")

        try:
            with ProgressFileWrapper(file_path, file_size, filename) as wrapped:
                response = self.session.post(
                    '/api/upload',
                    files={'file': (filename, wrapped)},
                    data={'uploadId': upload_id},
                    headers={'X-Request-ID': str(uuid.uuid4())},
                    timeout=upload_timeout,
                )
        except httpx.ConnectError:
            clear_progress_line()
            return f"Error uploading {file_path}: Cannot connect to receiver"
        except httpx.TimeoutException:
            clear_progress_line()
            return (
                f"Error uploading {file_path}: Upload timed out "
                f"(file size: {format_file_size(file_size)}, timeout: {upload_timeout:.1f}s)"
            )
        except OSError as e:
            clear_progress_line()
            return f"Error reading {file_path}: {e}"

        if response.status_code == 200:
            record = response.json()['file']
            return f"Uploaded:\n{self._describe_record(record)}"
        return f"Error uploading {file_path}: {self._format_error(response)}"

    def upload_many(self, file_paths: list[str]) -> str:
        """
        Upload several files in one batch request.

        Args:
            file_paths: Paths of the files to send

        Returns:
            One line per file with its individual outcome
        """
        if len(file_paths) == 1:
            return self.upload(file_paths[0])

        results = []
        handles = []
        total_size = 0

        for file_path in file_paths:
            error = self._check_local_file(file_path)
            if error:
                results.append(f"Error: {error}")
                continue
            total_size += os.path.getsize(file_path)
            handles.append((file_path, open(file_path, 'rb')))

        if not handles:
            return '\n'.join(results)

        try:
            files = [('files', (os.path.basename(path), handle)) for path, handle in handles]
            response = self.session.post(
                '/api/upload-multiple',
                files=files,
                headers={'X-Request-ID': str(uuid.uuid4())},
                timeout=self._calculate_upload_timeout(total_size),
            )
        except httpx.ConnectError:
            results.append("Error: Cannot connect to receiver")
            return '\n'.join(results)
        except httpx.TimeoutException:
            results.append(f"Error: Upload timed out (total size: {format_file_size(total_size)})")
            return '\n'.join(results)
        finally:
            for _, handle in handles:
                handle.close()

        if response.status_code != 200:
            results.append(f"Error: {self._format_error(response)}")
            return '\n'.join(results)

        data = response.json()
        for item in data['results']:
            if item['success']:
                results.append(f"Uploaded:\n{self._describe_record(item['file'])}")
            else:
                results.append(f"Failed: {item['name']}: {item.get('error') or item.get('code')}")
        results.append(data['message'])
        return '\n'.join(results)

    def list_files(self, date: Optional[str] = None, limit: Optional[int] = None) -> str:
        """
        List received files, newest first.

        Args:
            date: Optional day folder (YYYY-MM-DD)
            limit: Optional page size

        Returns:
            Formatted list of files
        """
        params = {}
        if date:
            params['date'] = date
        if limit:
            params['limit'] = limit

        try:
            response = self._request_with_retry('GET', '/api/files', params=params)
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        files = data['files']
        if not files:
            scope = f"on {date}" if date else "on the receiver"
            return f"No files found {scope}."

        output = [f"Showing {data['returned']} of {data['total']} file(s):\n"]
        output.extend(self._describe_record(record) for record in files)
        return '\n'.join(output)

    def _resolve_output_path(self, output_path: Optional[str], filename: str) -> Path:
        if not output_path:
            return Path.cwd() / filename
        target = Path(output_path).expanduser()
        if target.is_dir():
            return target / filename
        return target

    def download(self, date: str, stored_name: str, output_path: Optional[str] = None) -> str:
        """
        Download a stored file with progress feedback.

        Bytes go to a hidden temporary file next to the target, which is
        renamed into place only once the whole body has arrived.

        Args:
            date: Day folder of the file
            stored_name: On-disk name of the file
            output_path: Optional target file or directory (defaults to the original name in cwd)

        Returns:
            Success message with download details
        """
        url = f"/api/download/{quote(date, safe='')}/{quote(stored_name, safe='')}"
        temp_file = None

        try:
            with self.session.stream('GET', url) as response:
                if response.status_code != 200:
                    response.read()
                    return f"Error: {self._format_error(response)}"

                filename = filename_from_disposition(response.headers.get('Content-Disposition')) or stored_name
                output_file = self._resolve_output_path(output_path, filename)
                output_file.parent.mkdir(parents=True, exist_ok=True)
                temp_file = output_file.with_name(f".{output_file.name}.{secrets.token_hex(4)}.part")

                total_size = int(response.headers.get('Content-Length', 0))
                downloaded = 0

                with open(temp_file, 'wb') as f:
                    for chunk in response.iter_bytes(chunk_size=DOWNLOAD_PIECE_SIZE):
                        f.write(chunk)
                        downloaded += len(chunk)
                        if total_size > 0:
                            progress = (downloaded / total_size) * 100
                            sys.stdout.write(
                                f"\rDownloading {filename}: {format_file_size(downloaded)} / "
                                f"{format_file_size(total_size)} ({GREEN}{progress:.1f}%{RESET})"
                            )
                        else:
                            sys.stdout.write(f"\rDownloading {filename}: {format_file_size(downloaded)}")
                        sys.stdout.flush()

                os.replace(temp_file, output_file)
                temp_file = None

                sys.stdout.write('\n')
                sys.stdout.flush()

                logger.info(f"Downloaded {date}/{stored_name} to {output_file} size={downloaded}")
                return f"Downloaded: {filename} ({format_file_size(downloaded)})\nSaved to: {output_file.absolute()}"

        except httpx.ConnectError:
            return "Error: Cannot connect to receiver. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Receiver may be overloaded."
        except httpx.HTTPError as e:
            logger.warning(f"Download of {date}/{stored_name} interrupted: {e}")
            return f"Error: Download interrupted: {e}"
        except OSError as e:
            return f"Error writing file: {e}"
        finally:
            self._discard_partial(temp_file)

    def _discard_partial(self, temp_file: Optional[Path]) -> None:
        if temp_file is None:
            return
        clear_progress_line()
        try:
            temp_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial download {temp_file}: {e}")

    def delete(self, date: str, stored_name: str) -> str:
        """
        Delete a stored file.

        Args:
            date: Day folder of the file
            stored_name: On-disk name of the file

        Returns:
            Result message
        """
        url = f"/api/files/{quote(date, safe='')}/{quote(stored_name, safe='')}"
        try:
            response = self._request_with_retry('DELETE', url)
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code == 200:
            return f"Deleted: {date}/{stored_name}"
        return f"Error: {self._format_error(response)}"

    def stats(self) -> str:
        """
        Fetch storage statistics.

        Returns:
            Formatted statistics block
        """
        try:
            response = self._request_with_retry('GET', '/api/stats')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        stats = response.json()['stats']
        return (
            f"Receiver: {stats['config']['computerName']}\n"
            f"Files: {stats['totalFiles']} ({stats['totalSizeStr']})\n"
            f"Free space: {stats['freeSpaceStr']}\n"
            f"Max file size: {stats['config']['maxFileSizeStr']}\n"
            f"Save path: {stats['savePath']}\n"
            f"Uptime: {stats['serverUptime']}"
        )

    def info(self) -> str:
        """
        Fetch receiver identity.

        Returns:
            Formatted identity block
        """
        try:
            response = self._request_with_retry('GET', '/api/info')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        server = response.json()['server']
        return (
            f"Connected to {server['name']} (version {server['version']})\n"
            f"Max file size: {format_file_size(server['maxFileSize'])}\n"
            f"Save path: {server['savePath']}"
        )

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
