"""Exceptions raised across the storage boundary.

Expected medium faults (missing blobs, permission problems, capacity
overruns) never surface as exceptions; storages translate them into
`None` / `False` results. Only the errors below are raised.
"""


class BlobStoreError(Exception):
    """Base error for the blob store package."""


class StorageDisposedError(BlobStoreError):
    """An operation was attempted on a storage after `dispose()`."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Storage '{identifier}' has been disposed")
        self.identifier = identifier


class OperationCancelled(BlobStoreError):
    """The caller's cancellation signal was set before the operation finished."""


class StorageNotRegisteredError(BlobStoreError, LookupError):
    """A required storage identifier has no registered factory."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"{identifier} isn't registered.")
        self.identifier = identifier


class ConfigError(BlobStoreError):
    """The server configuration document is invalid."""
