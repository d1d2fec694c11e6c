"""stagedfs: stage file edits in memory, then commit them to disk.

Reads, writes, copies (literal paths, lists or glob patterns, optionally
rendered as jinja2 templates) and deletions all go to an in-memory store.
Nothing reaches the real filesystem until :meth:`Editor.commit` runs.

Example:
    >>> import stagedfs
    >>> editor = stagedfs.create()
    >>> editor.copy_tpl("templates/**", "out", {"name": "demo"})
    >>> editor.delete("out/**/*.bak")
    >>> report = editor.commit()
"""

from __future__ import annotations

from ._binary import is_binary
from ._glob import GlobOptions, expand, globify, is_dynamic_pattern, match
from ._template import render
from .commit import CommitReport
from .copy import ChangeError, CopyOptions
from .editor import Editor
from .exceptions import (
    CommitFailedError,
    CopyError,
    DestinationShapeError,
    IncompatibleStoreError,
    NoMatchError,
    StagedFSError,
    ValidationError,
)
from .record import FileRecord, FileStat
from .state import FileState
from .store import MemoryStore


def create(store=None) -> Editor:
    """Return an :class:`Editor` over *store* (a new :class:`MemoryStore` by default)."""
    return Editor(store)


__all__ = [
    "create",
    "Editor",
    "MemoryStore",
    "FileRecord",
    "FileStat",
    "FileState",
    "GlobOptions",
    "CopyOptions",
    "CommitReport",
    "ChangeError",
    # Collaborator interfaces
    "expand",
    "globify",
    "is_dynamic_pattern",
    "match",
    "render",
    "is_binary",
    # Exceptions
    "StagedFSError",
    "NoMatchError",
    "DestinationShapeError",
    "IncompatibleStoreError",
    "ValidationError",
    "CopyError",
    "CommitFailedError",
]
