"""Services package: storage registry, provider and the DI container.

Keep this package minimal; it only exposes the pieces hosts need to
register and resolve storages.
"""
from .container import ServiceContainer
from .provider import StorageProvider
from .registry import StorageRegistry

__all__ = [
    "ServiceContainer",
    "StorageProvider",
    "StorageRegistry",
]
