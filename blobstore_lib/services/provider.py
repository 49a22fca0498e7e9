"""Process-wide cache of constructed storage singletons.

The provider consults the registry the first time an identifier is
resolved, constructs the storage exactly once and hands out the same
instance for every later call. Construction for one identifier never
blocks resolution of another.
"""
from __future__ import annotations
import logging
import threading
from typing import Any, Dict, Optional

from blobstore_lib.storage.interfaces import StorageProtocol
from blobstore_lib.util import normalize_identifier
from .registry import StorageRegistry

logger = logging.getLogger(__name__)


class StorageProvider:
    def __init__(self, registry: StorageRegistry, context: Any = None) -> None:
        self._registry = registry
        self._context = context
        self._lock = threading.Lock()
        self._storages: Dict[str, StorageProtocol] = {}
        self._build_locks: Dict[str, threading.Lock] = {}

    def get_storage(self, identifier: Optional[str] = None) -> Optional[StorageProtocol]:
        """Return the storage for `identifier`, constructing it on first use.

        Returns None when no factory is registered for the identifier.
        Build locks exist only while a registered storage is being
        constructed; the builder drops its lock before releasing it, and a
        waiter that wakes on a dropped lock starts over.
        """
        key = normalize_identifier(identifier)
        while True:
            with self._lock:
                storage = self._storages.get(key)
                if storage is not None:
                    return storage
                if key not in self._registry:
                    logger.debug("No storage registered for '%s'", key)
                    return None
                build_lock = self._build_locks.setdefault(key, threading.Lock())

            with build_lock:
                with self._lock:
                    if self._build_locks.get(key) is not build_lock:
                        continue
                try:
                    return self._construct(key)
                finally:
                    with self._lock:
                        self._build_locks.pop(key, None)

    def _construct(self, key: str) -> Optional[StorageProtocol]:
        factory = self._registry.get(key)
        if factory is None:
            return None
        created = factory(self._context)
        if created is None:
            logger.warning("Storage factory for '%s' returned None", key)
            return None
        with self._lock:
            self._storages[key] = created
        logger.info("Constructed storage '%s' (%s)", key, type(created).__name__)
        return created

    def is_constructed(self, identifier: Optional[str]) -> bool:
        with self._lock:
            return normalize_identifier(identifier) in self._storages

    def constructed(self) -> Dict[str, StorageProtocol]:
        with self._lock:
            return dict(self._storages)

    def dispose_all(self) -> None:
        """Dispose every constructed storage. Cached instances stay cached (and disposed)."""
        for key, storage in self.constructed().items():
            try:
                storage.dispose()
            except Exception:
                logger.exception("Failed to dispose storage '%s'", key)
