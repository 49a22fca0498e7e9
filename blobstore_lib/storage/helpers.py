"""Convenience wrappers layered over the storage capability contract."""
from __future__ import annotations
import io
from threading import Event
from typing import Iterator, Optional

from .base import COPY_CHUNK_SIZE, check_cancelled
from .blob import Blob
from .interfaces import StorageProtocol


def read_bytes(storage: StorageProtocol, full_name: str, max_length: Optional[int] = None,
               cancel: Optional[Event] = None) -> Optional[bytes]:
    """Read a whole blob (or its first `max_length` bytes). None when missing."""
    stream = storage.open_read(full_name, cancel)
    if stream is None:
        return None
    with stream:
        if max_length is None:
            chunks = []
            while True:
                check_cancelled(cancel)
                chunk = stream.read(COPY_CHUNK_SIZE)
                if not chunk:
                    return b''.join(chunks)
                chunks.append(chunk)
        out = bytearray()
        while len(out) < max_length:
            check_cancelled(cancel)
            chunk = stream.read(min(COPY_CHUNK_SIZE, max_length - len(out)))
            if not chunk:
                break
            out.extend(chunk)
        return bytes(out)


def read_text(storage: StorageProtocol, full_name: str, encoding: str = 'utf-8',
              cancel: Optional[Event] = None) -> Optional[str]:
    data = read_bytes(storage, full_name, cancel=cancel)
    return None if data is None else data.decode(encoding)


def write_bytes(storage: StorageProtocol, full_name: str, data: bytes, offset: int = 0,
                length: Optional[int] = None, cancel: Optional[Event] = None) -> bool:
    """Write `data[offset:offset + length]` as the content of `full_name`."""
    if data is None:
        raise TypeError("data must not be None")
    end = len(data) if length is None else offset + length
    if offset < 0 or end > len(data) or end < offset:
        raise ValueError("offset/length out of range")
    return storage.write(full_name, io.BytesIO(memoryview(data)[offset:end]), cancel)


def write_text(storage: StorageProtocol, full_name: str, text: str, encoding: str = 'utf-8',
               cancel: Optional[Event] = None) -> bool:
    return write_bytes(storage, full_name, text.encode(encoding), cancel=cancel)


def walk(storage: StorageProtocol, full_name: str = '', cancel: Optional[Event] = None) -> Iterator[Blob]:
    """Yield every descriptor below `full_name`, depth first."""
    for blob in storage.list(full_name, cancel):
        yield blob
        if blob.is_directory:
            yield from walk(storage, blob.full_name, cancel)
