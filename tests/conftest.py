"""Pytest configuration helpers for test collection.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally, and provide the shared
container / client fixtures.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def server_config(tmp_path):
    from blobstore_lib.config.config import ServerConfig, StorageDefinition
    return ServerConfig(
        server_name='test-server',
        log_level='WARNING',
        storages=[
            StorageDefinition(identifier='default', type='file', root=str(tmp_path / 'blobs'),
                              base_uri='http://files.example.com/static/'),
            StorageDefinition(identifier='scratch', type='memory', size_limit=16),
        ],
    )


@pytest.fixture
def app(tmp_path, server_config):
    from blobstore_lib.main import create_app, Config
    return create_app(Config(
        config_path=str(tmp_path / 'config' / 'server_config.yml'),
        data_dir=str(tmp_path),
        server_config=server_config,
    ))


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def container():
    from blobstore_lib.services import ServiceContainer
    c = ServiceContainer()
    yield c
    c.dispose_storages()
