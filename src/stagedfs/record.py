"""The FileRecord unit of state."""

from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass, field

from .state import FileState


@dataclass
class FileStat:
    """Metadata snapshot of a file.

    Attributes:
        mode: Full ``st_mode`` (file type and permission bits), or ``None``
            when no mode should be applied on commit.
        mtime: Modification time in seconds since the epoch.
        size: Size in bytes.
    """
    mode: int | None = None
    mtime: float | None = None
    size: int | None = None

    @classmethod
    def from_stat_result(cls, st: os.stat_result) -> FileStat:
        return cls(mode=st.st_mode, mtime=st.st_mtime, size=st.st_size)

    @property
    def permissions(self) -> int | None:
        """Permission bits (``mode & 0o7777``), or ``None``."""
        if self.mode is None:
            return None
        return stat_mod.S_IMODE(self.mode)


@dataclass(eq=False)
class FileRecord:
    """One path in the store, with its pending contents and provenance.

    Attributes:
        path: Absolute, OS-native key of the record.
        contents: File bytes, or ``None`` when the file does not exist
            (a tombstone when ``state`` is ``DELETED``).
        state: Whether commit acts on the record.
        stat: Metadata snapshot, used to diff permissions on commit.
        history: Source paths that produced this record, earliest first.
    """
    path: str
    contents: bytes | None = None
    state: FileState = FileState.UNMODIFIED
    stat: FileStat | None = None
    history: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.path = os.path.abspath(self.path)
        if not self.history:
            self.history = [self.path]

    @property
    def text(self) -> str | None:
        if self.contents is None:
            return None
        return self.contents.decode("utf-8")
