"""Tests for receiver configuration loading and validation."""

import json
import socket
from pathlib import Path

import pytest

from common.constants import DEFAULT_MAX_FILE_SIZE
from receiver import config as config_module
from receiver.config import ServerConfig, load_config, normalize_allow_types, save_config


def test_defaults():
    config = ServerConfig()

    assert config.computer_name == socket.gethostname()
    assert config.max_file_size == DEFAULT_MAX_FILE_SIZE == 100 * 1024 * 1024
    assert config.allow_types == ('*',)
    assert config.allows_all_types
    assert config.save_path.is_absolute()


@pytest.mark.parametrize('raw, expected', [
    (['pdf', '.JPG', ' png '], ('.pdf', '.jpg', '.png')),
    (['pdf', '*'], ('*',)),
    (('*',), ('*',)),
])
def test_normalize_allow_types(raw, expected):
    assert normalize_allow_types(raw) == expected


@pytest.mark.parametrize('raw', ['pdf', [], ['', ' '], 5])
def test_normalize_allow_types_rejects_bad_values(raw):
    with pytest.raises(ValueError):
        normalize_allow_types(raw)


def test_negative_max_size_rejected(tmp_path):
    with pytest.raises(ValueError):
        ServerConfig(save_path=tmp_path, max_file_size=-1)


def test_load_creates_default_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, 'STORAGE_PATH_OVERRIDE', None)
    config_path = tmp_path / 'server-config.json'

    config = load_config(config_path)

    assert config_path.exists()
    data = json.loads(config_path.read_text())
    assert data['maxFileSize'] == DEFAULT_MAX_FILE_SIZE
    assert data['allowTypes'] == ['*']
    assert data['computerName'] == config.computer_name


def test_load_existing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, 'STORAGE_PATH_OVERRIDE', None)
    config_path = tmp_path / 'server-config.json'
    config_path.write_text(json.dumps({
        'computerName': 'Office PC',
        'savePath': str(tmp_path / 'inbox'),
        'maxFileSize': 2048,
        'allowTypes': ['pdf'],
    }))

    config = load_config(config_path)

    assert config.computer_name == 'Office PC'
    assert config.save_path == (tmp_path / 'inbox').resolve()
    assert config.max_file_size == 2048
    assert config.allow_types == ('.pdf',)


def test_load_malformed_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, 'STORAGE_PATH_OVERRIDE', None)
    config_path = tmp_path / 'server-config.json'
    config_path.write_text('{ not json')

    config = load_config(config_path)

    assert config.max_file_size == DEFAULT_MAX_FILE_SIZE


@pytest.mark.parametrize('content', ['[]', 'null', '42', '"text"'])
def test_load_non_object_file_uses_defaults(tmp_path, monkeypatch, content):
    monkeypatch.setattr(config_module, 'STORAGE_PATH_OVERRIDE', None)
    config_path = tmp_path / 'server-config.json'
    config_path.write_text(content)

    config = load_config(config_path)

    assert config.max_file_size == DEFAULT_MAX_FILE_SIZE


def test_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        ServerConfig.from_dict([])


def test_storage_path_override(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, 'STORAGE_PATH_OVERRIDE', str(tmp_path / 'override'))

    config = load_config(tmp_path / 'server-config.json')

    assert config.save_path == (tmp_path / 'override').resolve()


def test_save_and_round_trip(tmp_path):
    original = ServerConfig(
        computer_name='box', save_path=tmp_path / 'files', max_file_size=10, allow_types=['txt'],
    )
    path = tmp_path / 'nested' / 'cfg.json'

    save_config(original, path)
    restored = ServerConfig.from_dict(json.loads(path.read_text()))

    assert restored == original


def test_save_to_unwritable_location_does_not_raise(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('file, not a directory')

    save_config(ServerConfig(save_path=tmp_path), Path(blocker) / 'cfg.json')
