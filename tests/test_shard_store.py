"""Tests for the day-sharded file store."""

import errno
import io
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from receiver.exceptions import (
    InvalidPathError,
    NotFoundError,
    StorageFullError,
    StorageIOError,
    TooLargeError,
)
from receiver.storage.shard_store import (
    is_partial_upload,
    shard_name_for,
    translate_os_error,
    validate_component,
    validate_shard_date,
)


class FailingStream:
    """Stream that yields some bytes and then raises, like an aborted client."""

    def __init__(self, good: bytes, error: Exception):
        self._good = good
        self._error = error
        self._sent = False

    def read(self, size: int = -1) -> bytes:
        if not self._sent:
            self._sent = True
            return self._good
        raise self._error


def _partials(directory):
    return [name for name in os.listdir(directory) if is_partial_upload(name)]


def test_root_created_on_init(store):
    assert store.root.is_dir()


def test_shard_for_creates_directory(store):
    shard_dir = store.shard_for(date(2024, 1, 1))

    assert shard_dir == store.root / '2024-01-01'
    assert shard_dir.is_dir()


def test_shard_for_is_idempotent(store):
    """Test that an existing shard directory is not an error."""
    first = store.shard_for(date(2024, 1, 1))
    second = store.shard_for(date(2024, 1, 1))

    assert first == second


def test_shard_for_concurrent_callers(store):
    """Test that many threads creating the same shard at once all succeed."""
    workers = 16
    barrier = threading.Barrier(workers)

    def create(_):
        barrier.wait()
        return store.shard_for(date(2024, 1, 1))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        shards = list(pool.map(create, range(workers)))

    assert set(shards) == {store.root / '2024-01-01'}
    assert store.list_shards() == ['2024-01-01']


def test_shard_name_for():
    assert shard_name_for(date(2024, 3, 9)) == '2024-03-09'


def test_write_and_read(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    path = store.write(shard_dir, 'a.txt', io.BytesIO(b'hello world'))

    assert path == shard_dir / 'a.txt'
    size, pieces = store.read('2024-01-01', 'a.txt')
    assert size == 11
    assert b''.join(pieces) == b'hello world'


def test_write_empty_stream(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    path = store.write(shard_dir, 'empty.txt', io.BytesIO(b''))

    assert path.stat().st_size == 0


def test_write_large_stream_in_pieces(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    payload = os.urandom(300 * 1024)

    store.write(shard_dir, 'big.bin', io.BytesIO(payload))

    size, pieces = store.read('2024-01-01', 'big.bin')
    assert size == len(payload)
    assert b''.join(pieces) == payload


def test_write_leaves_no_partial_file(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    store.write(shard_dir, 'a.txt', io.BytesIO(b'data'))

    assert _partials(shard_dir) == []


def test_write_over_limit_raises_and_cleans_up(store):
    """Test that exceeding max_bytes mid-stream leaves nothing behind."""
    shard_dir = store.shard_for(date(2024, 1, 1))

    with pytest.raises(TooLargeError):
        store.write(shard_dir, 'big.bin', io.BytesIO(b'x' * 11), max_bytes=10)

    assert os.listdir(shard_dir) == []


def test_write_exactly_at_limit_succeeds(store):
    shard_dir = store.shard_for(date(2024, 1, 1))

    path = store.write(shard_dir, 'edge.bin', io.BytesIO(b'x' * 10), max_bytes=10)

    assert path.stat().st_size == 10


def test_aborted_stream_removes_partial(store):
    """Test that a client abort mid-upload leaves no file under any name."""
    shard_dir = store.shard_for(date(2024, 1, 1))
    stream = FailingStream(b'partial', ConnectionResetError('client went away'))

    with pytest.raises(StorageIOError):
        store.write(shard_dir, 'a.txt', stream)

    assert os.listdir(shard_dir) == []


def test_non_os_error_in_stream_propagates_and_cleans_up(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    stream = FailingStream(b'partial', RuntimeError('boom'))

    with pytest.raises(RuntimeError):
        store.write(shard_dir, 'a.txt', stream)

    assert os.listdir(shard_dir) == []


def test_write_replaces_existing_file(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    store.write(shard_dir, 'a.txt', io.BytesIO(b'old'))
    store.write(shard_dir, 'a.txt', io.BytesIO(b'new content'))

    _, pieces = store.read('2024-01-01', 'a.txt')
    assert b''.join(pieces) == b'new content'


def test_write_rejects_bad_stored_name(store):
    shard_dir = store.shard_for(date(2024, 1, 1))

    with pytest.raises(InvalidPathError):
        store.write(shard_dir, '../escape.txt', io.BytesIO(b'x'))


def test_read_missing_file(store):
    store.shard_for(date(2024, 1, 1))

    with pytest.raises(NotFoundError):
        store.read('2024-01-01', 'missing.txt')


def test_read_directory_is_not_found(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    (shard_dir / 'nested').mkdir()

    with pytest.raises(NotFoundError):
        store.read('2024-01-01', 'nested')


def test_stat_returns_size(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    store.write(shard_dir, 'a.txt', io.BytesIO(b'12345'))

    assert store.stat('2024-01-01', 'a.txt').st_size == 5


def test_delete_removes_file(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    store.write(shard_dir, 'a.txt', io.BytesIO(b'data'))

    store.delete('2024-01-01', 'a.txt')

    assert not (shard_dir / 'a.txt').exists()


def test_delete_missing_file_raises_not_found(store):
    """Test that deleting a nonexistent file reports NotFound, not success."""
    store.shard_for(date(2024, 1, 1))

    with pytest.raises(NotFoundError):
        store.delete('2024-01-01', 'nonexistent.txt')


def test_delete_in_missing_shard_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.delete('1999-01-01', 'nonexistent.txt')


def test_delete_directory_raises_not_found(store):
    shard_dir = store.shard_for(date(2024, 1, 1))
    (shard_dir / 'nested').mkdir()

    with pytest.raises(NotFoundError):
        store.delete('2024-01-01', 'nested')


@pytest.mark.parametrize('shard, name', [
    ('..', 'a.txt'),
    ('.', 'a.txt'),
    ('2024-01-01', '..'),
    ('2024-01-01', '../a.txt'),
    ('2024-01-01', 'sub/a.txt'),
    ('2024-01-01', 'sub\\a.txt'),
    ('2024-01-01', 'a\x00.txt'),
    ('', 'a.txt'),
    ('2024-01-01', ''),
])
def test_traversal_attempts_rejected(store, shard, name):
    """Test that components able to escape their directory are rejected."""
    with pytest.raises(InvalidPathError):
        store.delete(shard, name)
    with pytest.raises(InvalidPathError):
        store.read(shard, name)


def test_double_dots_inside_name_are_allowed():
    assert validate_component('v1..2.txt') == 'v1..2.txt'


def test_list_shards_newest_first(store):
    for day in (date(2024, 1, 2), date(2023, 12, 31), date(2024, 1, 1)):
        store.shard_for(day)

    assert store.list_shards() == ['2024-01-02', '2024-01-01', '2023-12-31']


def test_list_shards_ignores_root_files_and_symlinks(store, tmp_path):
    store.shard_for(date(2024, 1, 1))
    (store.root / 'stray.txt').write_text('x')
    outside = tmp_path / 'outside'
    outside.mkdir()
    os.symlink(outside, store.root / '2099-01-01')

    assert store.list_shards() == ['2024-01-01']


def test_list_entries_skips_partials_dirs_and_symlinks(store, tmp_path):
    shard_dir = store.shard_for(date(2024, 1, 1))
    (shard_dir / 'keep.txt').write_text('x')
    (shard_dir / '.keep.txt.abcd1234.part').write_text('partial')
    (shard_dir / 'nested').mkdir()
    target = tmp_path / 'target.txt'
    target.write_text('outside')
    os.symlink(target, shard_dir / 'link.txt')

    names = [entry.name for entry in store.list_entries(shard_dir)]

    assert names == ['keep.txt']


def test_list_entries_missing_shard_is_empty(store):
    assert store.list_entries(store.root / '1999-01-01') == []


def test_translate_os_error_mapping():
    assert isinstance(translate_os_error(FileNotFoundError(), 'read', 'a'), NotFoundError)
    assert isinstance(translate_os_error(OSError(errno.ENOSPC, 'full'), 'write', 'a'), StorageFullError)
    assert isinstance(translate_os_error(PermissionError(errno.EACCES, 'denied'), 'write', 'a'), StorageIOError)


def test_disk_full_surfaces_as_storage_full(store):
    """Test that ENOSPC during write is reported as StorageFullError and cleaned up."""
    shard_dir = store.shard_for(date(2024, 1, 1))
    stream = FailingStream(b'partial', OSError(errno.ENOSPC, 'No space left on device'))

    with pytest.raises(StorageFullError):
        store.write(shard_dir, 'a.txt', stream)

    assert os.listdir(shard_dir) == []


def test_validate_shard_date_accepts_calendar_days():
    assert validate_shard_date('2024-02-29') == '2024-02-29'


@pytest.mark.parametrize('bad', ['2024-13-99', '2023-02-29', '2024-1-5', '../2024-01-01', ''])
def test_validate_shard_date_rejects(bad):
    with pytest.raises(InvalidPathError):
        validate_shard_date(bad)
