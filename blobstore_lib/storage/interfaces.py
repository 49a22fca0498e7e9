from datetime import datetime
from threading import Event
from typing import Protocol, BinaryIO, List, Optional, Tuple, runtime_checkable

from .blob import Blob


@runtime_checkable
class StorageProtocol(Protocol):
    """Capability contract shared by every storage backend.

    Implementations should follow the semantics documented on
    `blobstore_lib.storage.base.Storage` (None/False for expected
    failures, `StorageDisposedError` after disposal, thread-safety).
    """

    @property
    def identifier(self) -> str: ...

    @property
    def is_disposed(self) -> bool: ...

    def query(self, full_name: str) -> Optional[Blob]: ...

    def list(self, full_name: str, cancel: Optional[Event] = None) -> List[Blob]: ...

    def open_read(self, full_name: str, cancel: Optional[Event] = None) -> Optional[BinaryIO]: ...

    def create_directory(self, full_name: str, cancel: Optional[Event] = None) -> bool: ...

    def rename(self, full_name: str, new_name: str, cancel: Optional[Event] = None) -> bool: ...

    def write(self, full_name: str, stream: BinaryIO, cancel: Optional[Event] = None) -> bool: ...

    def delete(self, full_name: str, cancel: Optional[Event] = None) -> bool: ...

    def make_uri(self, full_name: str) -> Optional[str]: ...

    def make_uri_string(self, full_name: str) -> Optional[str]: ...

    def get_timestamps(self, full_name: str) -> Tuple[Optional[datetime], Optional[datetime]]: ...

    def dispose(self) -> None: ...
