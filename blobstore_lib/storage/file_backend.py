"""Filesystem-backed blob storage.

Maps the virtual namespace onto a directory subtree: a canonical path
``a/b.txt`` lives at ``<root>/a/b.txt``. Paths that would resolve outside
the root are treated as missing. OS errors are logged and reported as
None/False results; they never escape to the caller.
"""
from __future__ import annotations
import logging
import os
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from threading import Event
from typing import BinaryIO, List, Optional, Tuple
from urllib.parse import quote, urljoin

from blobstore_lib.util import resolve_rename_target
from .base import Storage, check_cancelled, copy_stream
from .blob import Blob, BlobKind

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """Storage rooted at `directory`.

    When `base_uri` is given, `make_uri` returns ``base_uri + path`` for
    blobs that exist on disk (e.g. a public static-files URL).
    """

    def __init__(self, identifier: str = "default", directory: str | Path = "./data/blobs",
                 base_uri: Optional[str] = None) -> None:
        super().__init__(identifier)
        self.directory = Path(os.path.abspath(directory))
        self.directory.mkdir(parents=True, exist_ok=True)
        if base_uri and not base_uri.endswith('/'):
            base_uri = base_uri + '/'
        self.base_uri = base_uri

    def _physical(self, path: str) -> Optional[Path]:
        real = Path(os.path.normpath(self.directory / path)) if path else self.directory
        if real != self.directory and self.directory not in real.parents:
            logger.warning("Path %r escapes the root of storage %s", path, self.identifier)
            return None
        return real

    def _virtual(self, real: Path) -> str:
        return real.relative_to(self.directory).as_posix()

    def _query(self, path: str) -> Optional[Blob]:
        real = self._physical(path)
        if real is None:
            return None
        try:
            mode = os.stat(real).st_mode
        except OSError:
            return None
        kind = BlobKind.DIRECTORY if stat.S_ISDIR(mode) else BlobKind.FILE
        return Blob(self, path, kind)

    def _list(self, path: str, cancel: Optional[Event]) -> List[Blob]:
        real = self._physical(path)
        if real is None or not real.is_dir():
            return []
        try:
            with os.scandir(real) as it:
                entries = list(it)
        except OSError:
            logger.debug("Failed to list %s", real, exc_info=True)
            return []
        check_cancelled(cancel)

        directories, files = [], []
        for entry in entries:
            try:
                (directories if entry.is_dir() else files).append(entry.name)
            except OSError:
                continue
        blobs = [Blob(self, self._virtual(real / name), BlobKind.DIRECTORY) for name in sorted(directories)]
        blobs.extend(Blob(self, self._virtual(real / name), BlobKind.FILE) for name in sorted(files))
        return blobs

    def _open_read(self, path: str, cancel: Optional[Event]) -> Optional[BinaryIO]:
        real = self._physical(path)
        if real is None:
            return None
        try:
            return open(real, 'rb')
        except OSError:
            return None

    def _create_directory(self, path: str, cancel: Optional[Event]) -> bool:
        real = self._physical(path)
        if real is None:
            return False
        try:
            real.mkdir(parents=True, exist_ok=True)
            return True
        except OSError:
            logger.debug("Failed to create directory %s", real, exc_info=True)
            return False

    def _rename(self, path: str, new_name: str, cancel: Optional[Event]) -> bool:
        target = resolve_rename_target(path, new_name)
        real = self._physical(path)
        new_real = self._physical(target)
        if real is None or new_real is None or self.directory in (real, new_real):
            return False
        if real == new_real:
            return real.exists()
        try:
            if new_real.exists():
                return False
            if real.is_dir():
                if real in new_real.parents:
                    return False
                shutil.move(str(real), str(new_real))
            else:
                os.rename(real, new_real)
            return True
        except OSError:
            logger.debug("Failed to rename %s -> %s", real, new_real, exc_info=True)
            return False

    def _write(self, path: str, stream: BinaryIO, cancel: Optional[Event]) -> bool:
        real = self._physical(path)
        if real is None or real == self.directory:
            return False
        try:
            real.parent.mkdir(parents=True, exist_ok=True)
            # cancellation mid-copy leaves whatever was written so far
            with open(real, 'wb') as f:
                copy_stream(stream, f, cancel)
            return True
        except OSError:
            logger.debug("Failed to write %s", real, exc_info=True)
            return False

    def _delete(self, path: str, cancel: Optional[Event]) -> bool:
        real = self._physical(path)
        if real is None or real == self.directory:
            return False
        try:
            if real.is_dir() and not real.is_symlink():
                shutil.rmtree(real)
            else:
                real.unlink()
            return True
        except OSError:
            logger.debug("Failed to delete %s", real, exc_info=True)
            return False

    def _make_uri(self, path: str) -> Optional[str]:
        if self.base_uri is None:
            return None
        real = self._physical(path)
        if real is None or not real.exists():
            return None
        return urljoin(self.base_uri, quote(path))

    def _get_timestamps(self, path: str) -> Tuple[Optional[datetime], Optional[datetime]]:
        real = self._physical(path)
        if real is None:
            return None, None
        try:
            st = os.stat(real)
        except OSError:
            return None, None
        if stat.S_ISDIR(st.st_mode):
            return None, None
        created = getattr(st, 'st_birthtime', st.st_ctime)
        return (datetime.fromtimestamp(created, tz=timezone.utc),
                datetime.fromtimestamp(st.st_mtime, tz=timezone.utc))
