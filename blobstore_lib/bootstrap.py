"""Bootstrap helpers for blob store startup.

Ensures a server configuration exists and registers every declared
storage into a `ServiceContainer`. Factoring this out keeps
`blobstore_lib.main` focused on composing services and building the
FastAPI application.
"""
from pathlib import Path
from typing import Optional

from blobstore_lib.config.config import (
    ServerConfig,
    default_server_config,
    load_server_config,
    save_server_config,
)
from blobstore_lib.services import ServiceContainer


def bootstrap_server(config_path: Path, logger, data_dir: str = 'data') -> ServerConfig:
    """Ensure the server config exists and return it.

    A default template with a single file storage under `data_dir` is
    written when the file is missing.
    """
    if not config_path.exists():
        logger.info("server config missing; creating default %s", config_path)
        save_server_config(default_server_config(data_dir), config_path)
    return load_server_config(config_path)


def register_storages(container: ServiceContainer, server_cfg: ServerConfig, logger,
                      force_backend: Optional[str] = None) -> None:
    """Register a factory for each storage declared in `server_cfg`.

    `force_backend='memory'` replaces every declared storage with an
    in-memory one (used by the development runner and tests).
    """
    for definition in server_cfg.storages:
        backend = force_backend or definition.type
        if backend == 'memory':
            container.add_memory_storage(definition.identifier, definition.size_limit)
        else:
            container.add_file_storage(definition.identifier, definition.root, definition.base_uri)
        logger.info("Storage '%s' configured as %s", definition.identifier, backend)
