"""Blob descriptors.

A `Blob` names one file or directory inside a specific storage. It is an
immutable handle: identity comes from the rendered
``"{identifier}:{full_name}"`` string, and operations are forwarded to
the owning storage using the descriptor's own path.
"""
from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO, List, Optional

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from threading import Event
    from .interfaces import StorageProtocol


class BlobKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class Blob:
    __slots__ = ("_storage", "_full_name", "_kind")

    def __init__(self, storage: 'StorageProtocol', full_name: str, kind: BlobKind) -> None:
        if storage is None:
            raise TypeError("storage must not be None")
        if full_name is None:
            raise TypeError("full_name must not be None")
        object.__setattr__(self, "_storage", storage)
        object.__setattr__(self, "_full_name", full_name)
        object.__setattr__(self, "_kind", BlobKind(kind))

    def __setattr__(self, name, value):
        raise AttributeError("Blob descriptors are immutable")

    @property
    def storage(self) -> 'StorageProtocol':
        return self._storage

    @property
    def full_name(self) -> str:
        return self._full_name

    @property
    def kind(self) -> BlobKind:
        return self._kind

    @property
    def is_file(self) -> bool:
        return self._kind is BlobKind.FILE

    @property
    def is_directory(self) -> bool:
        return self._kind is BlobKind.DIRECTORY

    @property
    def name(self) -> str:
        """Last segment of the full name."""
        return self._full_name.rpartition('/')[2]

    @property
    def parent(self) -> str:
        return self._full_name.rpartition('/')[0]

    @property
    def creation_time(self) -> Optional[datetime]:
        """Creation time, or None when the storage does not track it."""
        return self._storage.get_timestamps(self._full_name)[0]

    @property
    def last_modified_time(self) -> Optional[datetime]:
        return self._storage.get_timestamps(self._full_name)[1]

    def __str__(self) -> str:
        identifier = self._storage.identifier
        if identifier is None or not identifier.strip():
            return f"default:{self._full_name}"
        return f"{identifier}:{self._full_name}"

    def __repr__(self) -> str:
        return f"Blob({str(self)!r}, kind={self._kind.value})"

    def __eq__(self, other) -> bool:
        if isinstance(other, Blob):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))

    # Forwarding helpers

    def make_uri(self) -> Optional[str]:
        return self._storage.make_uri(self._full_name)

    def make_uri_string(self) -> Optional[str]:
        return self._storage.make_uri_string(self._full_name)

    def list(self, cancel: Optional['Event'] = None) -> List['Blob']:
        # files have no children; do not bother the storage
        if not self.is_directory:
            return []
        return self._storage.list(self._full_name, cancel)

    def open_read(self, cancel: Optional['Event'] = None) -> Optional[BinaryIO]:
        if not self.is_file:
            return None
        return self._storage.open_read(self._full_name, cancel)

    def read_bytes(self, cancel: Optional['Event'] = None) -> Optional[bytes]:
        stream = self.open_read(cancel)
        if stream is None:
            return None
        with stream:
            return stream.read()

    def rename(self, new_name: str, cancel: Optional['Event'] = None) -> bool:
        return self._storage.rename(self._full_name, new_name, cancel)

    def write(self, stream: BinaryIO, cancel: Optional['Event'] = None) -> bool:
        return self._storage.write(self._full_name, stream, cancel)

    def write_bytes(self, data: bytes, cancel: Optional['Event'] = None) -> bool:
        from .helpers import write_bytes
        return write_bytes(self._storage, self._full_name, data, cancel=cancel)

    def delete(self, cancel: Optional['Event'] = None) -> bool:
        return self._storage.delete(self._full_name, cancel)

    def to_dict(self) -> dict:
        """Plain representation used by the HTTP API."""
        return {
            "storage": self._storage.identifier,
            "full_name": self._full_name,
            "name": self.name,
            "kind": self._kind.value,
        }
