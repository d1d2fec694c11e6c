"""Per-path locks: serialize read-modify-write of one store key across threads."""

from __future__ import annotations

import os
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class PathLocks:
    """Registry of ``threading.RLock`` objects keyed by normalized path.

    Reentrant, so an operation holding a path may call another that
    locks the same path.  Entries are weak: a lock nobody holds or waits
    on is dropped.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def _get(self, path: str) -> threading.RLock:
        key = os.path.normcase(os.path.abspath(path))
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def __call__(self, path: str) -> Iterator[None]:
        lock = self._get(path)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
