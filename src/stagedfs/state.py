"""File states tracked by the store."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .record import FileRecord


class FileState(str, Enum):
    """Pending state of a :class:`~stagedfs.record.FileRecord`.

    Members: ``UNMODIFIED``, ``MODIFIED``, ``DELETED``.
    """
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    DELETED = "deleted"

    def __str__(self) -> str:          # noqa: D105
        return self.value


def is_modified(record: FileRecord) -> bool:
    return record.state is FileState.MODIFIED


def is_deleted(record: FileRecord) -> bool:
    return record.state is FileState.DELETED


def is_pending(record: FileRecord) -> bool:
    """True if commit would act on *record*."""
    return record.state is not FileState.UNMODIFIED


def set_modified(record: FileRecord) -> None:
    record.state = FileState.MODIFIED


def set_deleted(record: FileRecord) -> None:
    """Turn *record* into a tombstone."""
    record.state = FileState.DELETED
    record.contents = None


def set_committed(record: FileRecord) -> None:
    record.state = FileState.UNMODIFIED
