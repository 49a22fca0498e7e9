"""Application factory for the blob store FastAPI app.

This module exposes `create_app(config: Config) -> FastAPI` which performs
all heavy setup (logging, config loading, storage registration,
middleware and router registration). Avoids performing side-effects at
import time so tests can construct isolated apps.

To create an app for production or local runs:

    from blobstore_lib.main import create_app, Config
    app = create_app(Config())
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from blobstore_lib.bootstrap import bootstrap_server, register_storages
from blobstore_lib.config.config import ServerConfig
from blobstore_lib.logging_config import configure_logging
from blobstore_lib.services import ServiceContainer


@dataclass
class Config:
    config_path: str = "data/config/server_config.yml"
    data_dir: str = "data"
    # 'memory' replaces every configured storage with an in-memory one
    storage_backend: Optional[str] = None
    # If None, use `enable_brotli` from the server config
    enable_brotli: Optional[bool] = None
    # Pre-built server config; skips reading `config_path` when set
    server_config: Optional[ServerConfig] = None


def create_app(config: Config) -> FastAPI:
    """Create and return a configured FastAPI application."""
    config_path = Path(config.config_path)
    logger = configure_logging(config_path)

    server_cfg = config.server_config or bootstrap_server(config_path, logger, config.data_dir)

    # The container is the single process-scoped context: it owns the
    # storage registry and the provider caching constructed storages.
    container = ServiceContainer()
    container.register_singleton("server_config", server_cfg)
    register_storages(container, server_cfg, logger, force_backend=config.storage_backend)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Disposing storages")
        container.dispose_storages()

    app = FastAPI(title="Blob Store Server", lifespan=lifespan)
    app.state.container = container

    enable_brotli = config.enable_brotli if config.enable_brotli is not None else server_cfg.enable_brotli
    if enable_brotli:
        logger.info("Brotli compression middleware is enabled")
        from blobstore_lib.middleware import BrotliCompression
        app.add_middleware(BrotliCompression)

    # Router registration: import here to avoid import-time side-effects
    from blobstore_lib.server.api import router as server_router
    app.include_router(server_router, prefix='/api')

    return app
