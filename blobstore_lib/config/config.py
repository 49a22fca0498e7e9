"""Server configuration loaded from a human-editable YAML document."""
from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, ValidationError

from blobstore_lib.storage.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('data/config/server_config.yml')


class StorageDefinition(BaseModel):
    identifier: str = "default"
    type: Literal['file', 'memory'] = 'file'
    # file storages
    root: Optional[str] = None
    base_uri: Optional[str] = None
    # memory storages; None means unbounded
    size_limit: Optional[int] = None


class ServerConfig(BaseModel):
    server_name: Optional[str] = None
    log_level: str = 'INFO'
    enable_brotli: bool = False
    storages: List[StorageDefinition] = []


def default_server_config(data_dir: str = 'data') -> ServerConfig:
    return ServerConfig(
        server_name='blobstore',
        log_level='INFO',
        storages=[StorageDefinition(identifier='default', type='file', root=f'{data_dir}/blobs')],
    )


def load_server_config(path: Optional[Path] = None) -> ServerConfig:
    """Load and validate the YAML server config.

    Raises `ConfigError` when the file is missing, is not valid YAML or
    does not match the expected schema.
    """
    cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
    try:
        with cfg_path.open('r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read server config {cfg_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Server config {cfg_path} must be a mapping")
    try:
        cfg = ServerConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid server config {cfg_path}: {e}") from e

    seen = set()
    for definition in cfg.storages:
        if definition.identifier in seen:
            raise ConfigError(f"Storage '{definition.identifier}' is declared twice")
        seen.add(definition.identifier)
        if definition.type == 'file' and not definition.root:
            raise ConfigError(f"File storage '{definition.identifier}' needs a root directory")
    logger.debug('Loaded server config from %s with %d storages', cfg_path, len(cfg.storages))
    return cfg


def save_server_config(cfg: ServerConfig, path: Optional[Path] = None) -> Path:
    cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open('w', encoding='utf-8') as f:
        yaml.safe_dump(cfg.model_dump(exclude_none=True), f, sort_keys=False)
    return cfg_path
