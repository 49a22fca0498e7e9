"""Storage backend base class.

Defines the `Storage` abstract class implemented by every backend. The
public methods validate arguments, canonicalize paths, reject calls on a
disposed instance and honour the caller's cancellation signal before
delegating to the backend-specific `_` methods.

Contract summary:
- missing blobs, and paths climbing with `..`, are reported as `None`
  (query/open_read) or `[]` (list); mutations on such paths return False;
- mutations report success as a bool and never raise for medium faults;
- `StorageDisposedError` is raised for any call after `dispose()`;
- `OperationCancelled` is raised when `cancel` is set.
"""
from __future__ import annotations
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import BinaryIO, List, Optional, Tuple

from blobstore_lib.util import has_parent_reference, normalize_path, resolve_rename_target
from .blob import Blob
from .errors import OperationCancelled, StorageDisposedError

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 64 * 1024


def check_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("operation cancelled")


def copy_stream(source: BinaryIO, target, cancel: Optional[threading.Event] = None,
                chunk_size: int = COPY_CHUNK_SIZE) -> int:
    """Copy `source` into `target` chunk by chunk, checking `cancel` in between.

    Returns the number of bytes copied.
    """
    total = 0
    while True:
        check_cancelled(cancel)
        chunk = source.read(chunk_size)
        if not chunk:
            return total
        target.write(chunk)
        total += len(chunk)


class Storage(ABC):
    """Abstract blob storage.

    Implementations must be thread-safe; one instance is shared by every
    caller that resolved it from the provider.
    """

    def __init__(self, identifier: str) -> None:
        self._identifier = identifier
        self._state_lock = threading.Lock()
        self._disposed = False

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def is_disposed(self) -> bool:
        with self._state_lock:
            return self._disposed

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._identifier!r})"

    # Lifecycle

    def dispose(self) -> None:
        """Release the medium. Safe to call more than once and from several threads."""
        with self._state_lock:
            if self._disposed:
                return
            self._disposed = True
        logger.debug("Disposing storage %s", self._identifier)
        self._dispose()

    def _dispose(self) -> None:
        """Backend specific teardown; runs exactly once."""

    def __enter__(self) -> 'Storage':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _ensure_open(self) -> None:
        if self.is_disposed:
            raise StorageDisposedError(self._identifier)

    def _prepare(self, full_name: str, cancel: Optional[threading.Event] = None) -> Optional[str]:
        """Return the canonical path, or None for a path that climbs with '..'."""
        self._ensure_open()
        check_cancelled(cancel)
        path = normalize_path(full_name)
        if has_parent_reference(path):
            logger.debug("Rejecting path %r of storage %s", full_name, self._identifier)
            return None
        return path

    # Public capability surface

    def query(self, full_name: str) -> Optional[Blob]:
        """Return the descriptor for `full_name`, or None when it does not exist."""
        path = self._prepare(full_name)
        return None if path is None else self._query(path)

    def list(self, full_name: str, cancel: Optional[threading.Event] = None) -> List[Blob]:
        """Return the immediate children of a directory; [] for files and missing paths."""
        path = self._prepare(full_name, cancel)
        return [] if path is None else self._list(path, cancel)

    def open_read(self, full_name: str, cancel: Optional[threading.Event] = None) -> Optional[BinaryIO]:
        """Open a file for reading. The caller owns (and must close) the stream."""
        path = self._prepare(full_name, cancel)
        return None if path is None else self._open_read(path, cancel)

    def create_directory(self, full_name: str, cancel: Optional[threading.Event] = None) -> bool:
        path = self._prepare(full_name, cancel)
        return path is not None and self._create_directory(path, cancel)

    def rename(self, full_name: str, new_name: str, cancel: Optional[threading.Event] = None) -> bool:
        """Rename a blob.

        A `new_name` starting with '/' is taken as an absolute path; any
        other value is a new name inside the blob's parent directory.
        """
        if new_name is None:
            raise TypeError("new_name must not be None")
        path = self._prepare(full_name, cancel)
        if path is None or has_parent_reference(resolve_rename_target(path, new_name)):
            return False
        return self._rename(path, new_name, cancel)

    def write(self, full_name: str, stream: BinaryIO, cancel: Optional[threading.Event] = None) -> bool:
        """Replace the content of `full_name` with everything read from `stream`."""
        if stream is None:
            raise TypeError("stream must not be None")
        path = self._prepare(full_name, cancel)
        return path is not None and self._write(path, stream, cancel)

    def delete(self, full_name: str, cancel: Optional[threading.Event] = None) -> bool:
        path = self._prepare(full_name, cancel)
        return path is not None and self._delete(path, cancel)

    def make_uri(self, full_name: str) -> Optional[str]:
        """Return a public locator for the blob, or None when unsupported."""
        path = self._prepare(full_name)
        return None if path is None else self._make_uri(path)

    def make_uri_string(self, full_name: str) -> Optional[str]:
        uri = self.make_uri(full_name)
        return None if uri is None else str(uri)

    def get_timestamps(self, full_name: str) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Return (creation, last modification) times; None where unsupported."""
        path = self._prepare(full_name)
        return (None, None) if path is None else self._get_timestamps(path)

    # Backend hooks. Paths passed in are already canonical.

    @abstractmethod
    def _query(self, path: str) -> Optional[Blob]: ...

    @abstractmethod
    def _list(self, path: str, cancel: Optional[threading.Event]) -> List[Blob]: ...

    @abstractmethod
    def _open_read(self, path: str, cancel: Optional[threading.Event]) -> Optional[BinaryIO]: ...

    @abstractmethod
    def _create_directory(self, path: str, cancel: Optional[threading.Event]) -> bool: ...

    @abstractmethod
    def _rename(self, path: str, new_name: str, cancel: Optional[threading.Event]) -> bool: ...

    @abstractmethod
    def _write(self, path: str, stream: BinaryIO, cancel: Optional[threading.Event]) -> bool: ...

    @abstractmethod
    def _delete(self, path: str, cancel: Optional[threading.Event]) -> bool: ...

    def _make_uri(self, path: str) -> Optional[str]:
        return None

    def _get_timestamps(self, path: str) -> Tuple[Optional[datetime], Optional[datetime]]:
        return None, None
