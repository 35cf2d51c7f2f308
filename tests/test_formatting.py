"""Tests for size/uptime formatting and log path redaction."""

import io
import logging

import pytest

from common.formatting import format_file_size, format_uptime
from common.logging_config import PathRedactingFilter, setup_logging


@pytest.mark.parametrize('size, expected', [
    (0, '0 B'),
    (-5, '0 B'),
    (1, '1 B'),
    (512, '512 B'),
    (1023, '1023 B'),
    (1024, '1 KB'),
    (1536, '1.5 KB'),
    (2000000, '1.91 MB'),
    (100 * 1024 * 1024, '100 MB'),
    (1024 ** 3, '1 GB'),
    (5 * 1024 ** 4, '5 TB'),
    (3 * 1024 ** 5, '3072 TB'),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


@pytest.mark.parametrize('seconds, expected', [
    (0, '0s'),
    (0.9, '0s'),
    (59, '59s'),
    (60, '1m'),
    (3661, '1h 1m 1s'),
    (93784, '1d 2h 3m 4s'),
    (86400, '1d'),
])
def test_format_uptime(seconds, expected):
    assert format_uptime(seconds) == expected


def _record(msg, args=()):
    return logging.LogRecord('receiver.test', logging.INFO, __file__, 1, msg, args, None)


def test_redacting_filter_hides_root_in_message():
    record = _record('Wrote 5 bytes to /srv/drop/2024-01-01/a.txt')

    PathRedactingFilter('/srv/drop').filter(record)

    assert record.getMessage() == 'Wrote 5 bytes to <storage>/2024-01-01/a.txt'


def test_redacting_filter_hides_root_in_args():
    record = _record('Deleted %s', ('/srv/drop/2024-01-01/a.txt',))

    PathRedactingFilter('/srv/drop/').filter(record)

    assert record.getMessage() == 'Deleted <storage>/2024-01-01/a.txt'


def test_redacting_filter_leaves_other_text():
    record = _record('Listing %d files', (3,))

    assert PathRedactingFilter('/srv/drop').filter(record)
    assert record.getMessage() == 'Listing 3 files'


def test_setup_logging_writes_redacted_lines(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr('sys.stdout', buffer)

    logger = setup_logging('redaction-test', log_level='DEBUG', redact_root='/srv/drop')
    try:
        logging.getLogger('redaction-test.child').info('Stored /srv/drop/2024-01-01/a.txt')
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    output = buffer.getvalue()
    assert '<storage>/2024-01-01/a.txt' in output
    assert '/srv/drop' not in output
    assert logger.propagate is False


def test_setup_logging_switches_redaction_to_new_root(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr('sys.stdout', buffer)

    setup_logging('redaction-switch', log_level='INFO', redact_root='/srv/first')
    logger = setup_logging('redaction-switch', log_level='INFO', redact_root='/srv/second')
    try:
        logger.info('Stored /srv/second/2024-01-01/a.txt')
        [handler] = logger.handlers
        redactors = [f for f in handler.filters if isinstance(f, PathRedactingFilter)]
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    assert [f.root for f in redactors] == ['/srv/second']
    assert '<storage>/2024-01-01/a.txt' in buffer.getvalue()
