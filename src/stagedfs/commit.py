"""Commit engine: project pending store records onto the real filesystem."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import stat as stat_mod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from .copy._types import ChangeError
from .exceptions import CommitFailedError
from .record import FileRecord, FileStat
from .state import is_deleted, is_modified, is_pending, set_committed

if TYPE_CHECKING:
    from .editor import Editor

logger = logging.getLogger(__name__)

RecordFilter = Callable[[FileRecord], bool]


@dataclass
class CommitReport:
    """Result of committing a batch of records.

    Attributes:
        written: Paths written to disk.
        deleted: Paths removed from disk (or already absent).
        errors: Per-file failures; the other records were still committed.
    """
    written: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    errors: list[ChangeError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """``True`` if no record failed."""
        return not self.errors

    @property
    def total(self) -> int:
        """Number of records that reached the disk."""
        return len(self.written) + len(self.deleted)


# ---------------------------------------------------------------------------
# Disk I/O
# ---------------------------------------------------------------------------

def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    try:
        st = os.stat(parent)
    except FileNotFoundError:
        os.makedirs(parent, exist_ok=True)
        return
    if not stat_mod.S_ISDIR(st.st_mode):
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), parent)


def _write_record(record: FileRecord) -> None:
    """Write *record* and apply its permission bits only when they differ."""
    _ensure_parent(record.path)
    with open(record.path, "wb") as f:
        f.write(record.contents or b"")
    wanted = record.stat.permissions if record.stat is not None else None
    if wanted is not None:
        current = stat_mod.S_IMODE(os.stat(record.path).st_mode)
        if current != wanted:
            os.chmod(record.path, wanted)
    record.stat = FileStat.from_stat_result(os.stat(record.path))


def _remove_record(record: FileRecord) -> None:
    try:
        os.unlink(record.path)
    except FileNotFoundError:
        pass
    record.stat = None


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------

def commit_file(editor: Editor, record: FileRecord) -> bool:
    """Commit one record; return ``True`` if the disk was touched.

    The record replaces whatever object the store holds for its path.
    Unmodified records are a no-op.  I/O errors propagate and leave the
    record pending.
    """
    store = editor.store
    if store.get(record.path) is not record:
        store.add(record)

    with editor.locks(record.path):
        if is_modified(record):
            _write_record(record)
            set_committed(record)
            logger.debug("Wrote %s", record.path)
            return True
        if is_deleted(record):
            _remove_record(record)
            set_committed(record)
            logger.debug("Removed %s", record.path)
            return True
    return False


async def commit_file_async(editor: Editor, record: FileRecord) -> bool:
    """Async :func:`commit_file`; disk I/O runs in a worker thread."""
    return await asyncio.to_thread(commit_file, editor, record)


def _pending(editor: Editor, filter: RecordFilter | None) -> list[FileRecord]:
    records: list[FileRecord] = []

    def visit(record: FileRecord) -> None:
        if is_pending(record) and (filter is None or filter(record)):
            records.append(record)

    editor.store.each(visit)
    return records


def _record_result(report: CommitReport, record: FileRecord, result: object, deleted: bool) -> None:
    if isinstance(result, OSError):
        logger.warning("Failed to commit %s: %s", record.path, result)
        report.errors.append(ChangeError(path=record.path, error=str(result)))
    elif isinstance(result, BaseException):
        raise result
    elif result:
        (report.deleted if deleted else report.written).append(record.path)


def _finish(report: CommitReport, ignore_errors: bool) -> CommitReport:
    if report.errors and not ignore_errors:
        raise CommitFailedError(report)
    return report


def commit(
    editor: Editor,
    filter: RecordFilter | None = None,
    *,
    ignore_errors: bool = False,
) -> CommitReport:
    """Commit every pending record (or those *filter* selects).

    Each record is attempted even when others fail.  Failures are listed in
    the report; unless *ignore_errors* is set they are then raised together
    as :class:`CommitFailedError`.
    """
    report = CommitReport()
    for record in _pending(editor, filter):
        deleted = is_deleted(record)
        try:
            result: object = commit_file(editor, record)
        except OSError as exc:
            result = exc
        _record_result(report, record, result, deleted)
    return _finish(report, ignore_errors)


async def commit_async(
    editor: Editor,
    filter: RecordFilter | None = None,
    *,
    ignore_errors: bool = False,
) -> CommitReport:
    """Async :func:`commit`; records are committed concurrently."""
    records = _pending(editor, filter)
    # Classify before committing resets the state
    deleted = [is_deleted(r) for r in records]
    results = await asyncio.gather(
        *(commit_file_async(editor, r) for r in records),
        return_exceptions=True,
    )
    report = CommitReport()
    for record, result, was_deleted in zip(records, results, deleted):
        _record_result(report, record, result, was_deleted)
    return _finish(report, ignore_errors)
