"""Memory-backed blob storage.

Blobs are kept in a flat, insertion-ordered mapping of canonical path to
payload bytes. There are no directory records: a directory exists only
as the common prefix ``"{dir}/"`` of the entries below it, and `list`
synthesizes one level of the tree from those prefixes on every call.

A single lock guards the entry table and the remaining-capacity counter,
so every operation on one instance is serialized.
"""
from __future__ import annotations
import io
import logging
from threading import Event, RLock
from typing import BinaryIO, Dict, List, Optional

from blobstore_lib.util import resolve_rename_target
from .base import Storage, check_cancelled, copy_stream
from .blob import Blob, BlobKind

logger = logging.getLogger(__name__)


def _prefix(path: str) -> str:
    return f"{path}/" if path else ""


class MemoryStorage(Storage):
    """In-process storage with an optional size limit in bytes.

    `size_limit` of None (or a negative number) means unbounded.
    """

    def __init__(self, identifier: str = "default", size_limit: Optional[int] = None) -> None:
        super().__init__(identifier)
        self._lock = RLock()
        self._entries: Dict[str, bytes] = {}
        self._bounded = size_limit is not None and size_limit >= 0
        self._size_left = int(size_limit) if self._bounded else 0

    @property
    def size_left(self) -> Optional[int]:
        """Remaining capacity in bytes, or None when unbounded."""
        with self._lock:
            return self._size_left if self._bounded else None

    def _credit(self, size: int) -> None:
        if self._bounded:
            self._size_left += size

    def _exists(self, path: str) -> bool:
        if path in self._entries:
            return True
        prefix = _prefix(path)
        return any(key.startswith(prefix) for key in self._entries)

    def _query(self, path: str) -> Optional[Blob]:
        if not path:
            return Blob(self, path, BlobKind.DIRECTORY)
        with self._lock:
            if path in self._entries:
                return Blob(self, path, BlobKind.FILE)
            prefix = _prefix(path)
            if any(key.startswith(prefix) for key in self._entries):
                return Blob(self, path, BlobKind.DIRECTORY)
        return None

    def _list(self, path: str, cancel: Optional[Event]) -> List[Blob]:
        with self._lock:
            if path in self._entries:
                return []
            check_cancelled(cancel)
            prefix = _prefix(path)
            blobs: List[Blob] = []
            seen = set()
            for key in self._entries:
                if not key.startswith(prefix):
                    continue
                head, sep, _ = key[len(prefix):].partition('/')
                if not sep:
                    blobs.append(Blob(self, key, BlobKind.FILE))
                    continue
                child = prefix + head
                if child not in seen:
                    seen.add(child)
                    blobs.append(Blob(self, child, BlobKind.DIRECTORY))
            return blobs

    def _open_read(self, path: str, cancel: Optional[Event]) -> Optional[BinaryIO]:
        with self._lock:
            data = self._entries.get(path)
        if data is None:
            return None
        return io.BytesIO(data)

    def _create_directory(self, path: str, cancel: Optional[Event]) -> bool:
        return True

    def _write(self, path: str, stream: BinaryIO, cancel: Optional[Event]) -> bool:
        if not path:
            logger.debug("Refusing to write to the root of %s", self.identifier)
            return False
        # payload size is unknown up front; buffer before touching the table
        buffer = io.BytesIO()
        try:
            copy_stream(stream, buffer, cancel)
        except OSError:
            logger.debug("Failed to read input stream for %s", path, exc_info=True)
            return False
        data = buffer.getvalue()

        with self._lock:
            check_cancelled(cancel)
            previous = self._entries.get(path)
            available = self._size_left + (len(previous) if previous is not None else 0)
            if self._bounded and available < len(data):
                logger.info("Memory storage %s is full: %d bytes requested, %d available",
                            self.identifier, len(data), available)
                return False
            self._entries[path] = data
            if self._bounded:
                self._size_left = available - len(data)
        return True

    def _rename(self, path: str, new_name: str, cancel: Optional[Event]) -> bool:
        target = resolve_rename_target(path, new_name)
        if not path or not target:
            return False
        with self._lock:
            check_cancelled(cancel)
            if target == path:
                return self._exists(path)
            if path in self._entries:
                if self._exists(target):
                    return False
                self._entries = {
                    (target if key == path else key): data
                    for key, data in self._entries.items()
                }
                return True

            prefix = _prefix(path)
            if target.startswith(prefix):
                return False
            moved = [key for key in self._entries if key.startswith(prefix)]
            if not moved or self._exists(target):
                return False
            self._entries = {
                (target + key[len(path):] if key.startswith(prefix) else key): data
                for key, data in self._entries.items()
            }
            logger.debug("Renamed directory %s -> %s (%d entries)", path, target, len(moved))
            return True

    def _delete(self, path: str, cancel: Optional[Event]) -> bool:
        if not path:
            return False
        with self._lock:
            check_cancelled(cancel)
            data = self._entries.pop(path, None)
            if data is not None:
                self._credit(len(data))
                return True

            prefix = _prefix(path)
            victims = [key for key in self._entries if key.startswith(prefix)]
            for key in victims:
                self._credit(len(self._entries.pop(key)))
            return len(victims) > 0

    def _dispose(self) -> None:
        with self._lock:
            self._entries.clear()
