"""Identifier -> storage factory mapping supplied by the host configuration."""
from __future__ import annotations
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from blobstore_lib.storage.interfaces import StorageProtocol
from blobstore_lib.util import normalize_identifier

logger = logging.getLogger(__name__)

# Factories are stored in their context-taking form; zero-argument
# factories are wrapped on registration.
StorageFactory = Callable[[Any], StorageProtocol]


class StorageRegistry:
    """Registered storage factories keyed by identifier.

    Registering an identifier twice replaces the factory. That only affects
    storages the provider has not constructed yet.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._factories: Dict[str, StorageFactory] = {}

    def register(self, identifier: Optional[str], factory: Callable[[], StorageProtocol]) -> 'StorageRegistry':
        if factory is None:
            raise TypeError("factory must not be None")
        return self.register_with_context(identifier, lambda _context: factory())

    def register_with_context(self, identifier: Optional[str], factory: StorageFactory) -> 'StorageRegistry':
        """Register a factory that receives the resolving context (the container)."""
        if factory is None:
            raise TypeError("factory must not be None")
        key = normalize_identifier(identifier)
        with self._lock:
            replaced = key in self._factories
            self._factories[key] = factory
        logger.info("%s storage factory '%s'", "Replaced" if replaced else "Registered", key)
        return self

    def get(self, identifier: Optional[str]) -> Optional[StorageFactory]:
        with self._lock:
            return self._factories.get(normalize_identifier(identifier))

    def __contains__(self, identifier: Optional[str]) -> bool:
        return self.get(identifier) is not None

    def identifiers(self) -> List[str]:
        with self._lock:
            return list(self._factories)
