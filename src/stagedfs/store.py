"""In-memory keyed store of FileRecords."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Iterator

from .record import FileRecord, FileStat

logger = logging.getLogger(__name__)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return the absolute, forward-slash form of *path* used for matching."""
    p = os.path.abspath(os.fspath(path))
    if os.sep != "/":
        p = p.replace(os.sep, "/")
    return p


def _load_record(path: str) -> FileRecord:
    """Build an unmodified record from whatever is on disk at *path*."""
    try:
        with open(path, "rb") as f:
            contents: bytes | None = f.read()
        st: FileStat | None = FileStat.from_stat_result(os.stat(path))
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        contents = None
        st = None
    except PermissionError:
        # Windows reports directories as PermissionError on open()
        if os.path.isdir(path):
            contents = None
            st = None
        else:
            raise
    return FileRecord(path=path, contents=contents, stat=st)


class MemoryStore:
    """Process-lifetime mapping from absolute path to :class:`FileRecord`.

    Records are created lazily: :meth:`get` loads a path from disk on first
    access and caches it, so every later read of that path sees pending
    edits rather than the disk.

    Example:
        >>> store = MemoryStore()
        >>> rec = store.get("setup.cfg")
        >>> rec.state
        <FileState.UNMODIFIED: 'unmodified'>
    """

    def __init__(self) -> None:
        self._records: dict[str, FileRecord] = {}
        self._guard = threading.RLock()

    @staticmethod
    def _key(path: str | os.PathLike[str]) -> str:
        return os.path.abspath(os.fspath(path))

    def get(self, path: str | os.PathLike[str]) -> FileRecord:
        key = self._key(path)
        with self._guard:
            record = self._records.get(key)
            if record is not None:
                return record
        record = _load_record(key)
        logger.debug("Loaded %s (on disk: %s)", key, record.contents is not None)
        with self._guard:
            # Another thread may have loaded the same path meanwhile
            return self._records.setdefault(key, record)

    def add(self, record: FileRecord) -> MemoryStore:
        key = self._key(record.path)
        with self._guard:
            self._records[key] = record
        return self

    def exists_in_memory(self, path: str | os.PathLike[str]) -> bool:
        """True if a record for *path* is loaded, whatever its contents."""
        with self._guard:
            return self._key(path) in self._records

    def each(self, visitor: Callable[[FileRecord], object]) -> MemoryStore:
        """Call *visitor* on every record in insertion order."""
        for record in list(self):
            visitor(record)
        return self

    def all(self) -> list[FileRecord]:
        with self._guard:
            return list(self._records.values())

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self.all())

    def __len__(self) -> int:
        with self._guard:
            return len(self._records)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return self.exists_in_memory(path)
