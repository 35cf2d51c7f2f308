"""Tests for upload progress tracking."""

import io

from common.types import FileRecord
from receiver.services.progress import (
    COMPLETE,
    FAILED,
    RECEIVING,
    ProgressReader,
    UploadStatus,
    UploadTracker,
)


def _record(size=10):
    return FileRecord(
        id='up', original_name='a.txt', stored_name='1_00000000_a.txt',
        size=size, created_at_millis=1, relative_path='1970-01-01/1_00000000_a.txt',
    )


def test_start_and_advance():
    tracker = UploadTracker()
    tracker.start('up', 'a.txt', 10)
    tracker.advance('up', 4)

    status = tracker.get('up')
    assert status.state == RECEIVING
    assert status.bytes_written == 4
    assert status.fraction == 0.4


def test_complete_sets_record():
    tracker = UploadTracker()
    tracker.start('up', 'a.txt', 10)
    tracker.complete('up', _record())

    status = tracker.get('up')
    assert status.state == COMPLETE
    assert status.finished
    assert status.fraction == 1.0


def test_fail_sets_error():
    tracker = UploadTracker()
    tracker.start('up', 'a.txt', 10)
    tracker.fail('up', 'disk full')

    status = tracker.get('up')
    assert status.state == FAILED
    assert status.error == 'disk full'


def test_unknown_size_has_no_fraction_until_complete():
    status = UploadStatus(upload_id='up', name='a.txt', total_bytes=None, bytes_written=5)

    assert status.fraction is None


def test_unknown_id_is_none_and_updates_ignored():
    tracker = UploadTracker()
    tracker.advance('nope', 5)
    tracker.fail('nope', 'x')

    assert tracker.get('nope') is None
    assert len(tracker) == 0


def test_eviction_prefers_finished_entries():
    tracker = UploadTracker(max_entries=2)
    tracker.start('old-running', 'a', 1)
    tracker.start('done', 'b', 1)
    tracker.complete('done', _record(1))
    tracker.start('new', 'c', 1)

    assert len(tracker) == 2
    assert tracker.get('done') is None
    assert tracker.get('old-running') is not None


def test_eviction_falls_back_to_oldest():
    tracker = UploadTracker(max_entries=2)
    for upload_id in ('a', 'b', 'c'):
        tracker.start(upload_id, upload_id, 1)

    assert tracker.get('a') is None
    assert tracker.get('c') is not None


def test_progress_reader_reports_bytes():
    seen = []
    reader = ProgressReader(io.BytesIO(b'abcdef'), seen.append)

    assert reader.read(4) == b'abcd'
    assert reader.read(4) == b'ef'
    assert reader.read(4) == b''
    assert seen == [4, 2]
