"""Blob storage abstraction package."""

from .base import Storage
from .blob import Blob, BlobKind
from .errors import (
    BlobStoreError,
    ConfigError,
    OperationCancelled,
    StorageDisposedError,
    StorageNotRegisteredError,
)
from .file_backend import FileStorage
from .interfaces import StorageProtocol
from .memory_backend import MemoryStorage

__all__ = [
    "Storage",
    "StorageProtocol",
    "Blob",
    "BlobKind",
    "FileStorage",
    "MemoryStorage",
    "BlobStoreError",
    "ConfigError",
    "OperationCancelled",
    "StorageDisposedError",
    "StorageNotRegisteredError",
]
