from __future__ import annotations
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar, cast

from blobstore_lib.storage.errors import StorageNotRegisteredError
from blobstore_lib.storage.interfaces import StorageProtocol
from blobstore_lib.util import normalize_identifier
from .provider import StorageProvider
from .registry import StorageRegistry

T = TypeVar("T")


class ServiceContainer:
    """A tiny, explicit DI container and the process-scoped storage context.

    Generic services are registered by key (string) and resolved via `get`;
    factories are evaluated once and their result cached as singletons.
    Storages have their own registry/provider pair so that the
    construct-once guarantee holds under concurrent first access.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self.storage_registry = StorageRegistry()
        self.storage_provider = StorageProvider(self.storage_registry, context=self)

    # Generic services

    def register_singleton(self, key: str, instance: Any) -> None:
        with self._lock:
            self._singletons[key] = instance

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        with self._lock:
            self._factories[key] = factory

    def get(self, key: str) -> Any:
        with self._lock:
            if key in self._singletons:
                return self._singletons[key]
            if key in self._factories:
                inst = self._factories[key]()
                self._singletons[key] = inst
                return inst
        raise KeyError(f"No service registered for key '{key}'")

    def get_typed(self, key: str) -> T:
        """Resolve and cast to the expected type."""
        return cast(T, self.get(key))

    # Storage registration

    def add_storage_factory(self, identifier: Optional[str],
                            factory: Callable[[], StorageProtocol]) -> 'ServiceContainer':
        self.storage_registry.register(identifier, factory)
        return self

    def add_storage_factory_with_context(self, identifier: Optional[str],
                                         factory: Callable[['ServiceContainer'], StorageProtocol]) -> 'ServiceContainer':
        self.storage_registry.register_with_context(identifier, factory)
        return self

    def add_file_storage(self, identifier: Optional[str], directory: str | Path,
                         base_uri: Optional[str] = None) -> 'ServiceContainer':
        from blobstore_lib.storage.file_backend import FileStorage
        key = normalize_identifier(identifier)
        return self.add_storage_factory(key, lambda: FileStorage(key, directory, base_uri))

    def add_memory_storage(self, identifier: Optional[str],
                           size_limit: Optional[int] = None) -> 'ServiceContainer':
        from blobstore_lib.storage.memory_backend import MemoryStorage
        key = normalize_identifier(identifier)
        return self.add_storage_factory(key, lambda: MemoryStorage(key, size_limit))

    # Storage resolution

    def get_storage(self, identifier: Optional[str] = None) -> Optional[StorageProtocol]:
        return self.storage_provider.get_storage(identifier)

    def get_required_storage(self, identifier: Optional[str] = None) -> StorageProtocol:
        storage = self.get_storage(identifier)
        if storage is None:
            raise StorageNotRegisteredError(normalize_identifier(identifier))
        return storage

    def dispose_storages(self) -> None:
        self.storage_provider.dispose_all()
