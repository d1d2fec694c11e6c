"""Editor handle: the entry point for staged file edits."""

from __future__ import annotations

import errno
import json
import os
from pathlib import PurePath
from typing import Any, Callable, Mapping

from . import commit as _commit
from . import delete as _delete
from ._glob import GlobOptions
from ._lock import PathLocks
from ._template import strip_template_suffix
from .copy import _ops
from .exceptions import ValidationError
from .record import FileRecord, FileStat
from .state import is_modified, is_pending, set_modified
from .store import MemoryStore

_MISSING = object()


def _encode(contents: str | bytes) -> bytes:
    if isinstance(contents, (bytes, bytearray)):
        return bytes(contents)
    return contents.encode("utf-8")


def _merge(base: Any, extra: Any) -> Any:
    """Merge *extra* into *base*; nested dicts merge, everything else replaces."""
    if not isinstance(base, dict) or not isinstance(extra, dict):
        return extra
    merged = dict(base)
    for key, value in extra.items():
        merged[key] = _merge(merged.get(key), value) if key in merged else value
    return merged


class Editor:
    """Stage reads, writes, copies and deletions in a store, then commit them.

    Nothing touches the disk until :meth:`commit` (or :meth:`commit_file`)
    runs.  Every operation goes through :attr:`store`, so later reads see
    earlier pending edits.

    Attributes:
        store: The record store; a :class:`MemoryStore` unless one is given.
        locks: Per-path locks serializing read-modify-write of one path.

    Example:
        >>> editor = Editor()
        >>> editor.write("out/README.md", "# hello\\n")
        '# hello\\n'
        >>> editor.copy("out/README.md", "out/docs/index.md")
        >>> report = editor.commit()
    """

    def __init__(self, store=None):
        self.store = store if store is not None else MemoryStore()
        self.locks = PathLocks()

    def __repr__(self) -> str:
        return f"Editor(store={self.store!r})"

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def exists(self, path: str | os.PathLike[str]) -> bool:
        """True if *path* has contents (on disk or pending)."""
        return self.store.get(path).contents is not None

    def read(
        self,
        path: str | os.PathLike[str],
        *,
        raw: bool = False,
        defaults: Any = _MISSING,
    ) -> str | bytes | Any:
        """Return the contents of *path* as text, or bytes when *raw* is set.

        Raises:
            FileNotFoundError: If *path* does not exist or is pending deletion
                and no *defaults* were given.
        """
        record = self.store.get(path)
        if record.contents is None:
            if defaults is not _MISSING:
                return defaults
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), record.path)
        if raw:
            return record.contents
        return record.contents.decode("utf-8")

    def read_json(self, path: str | os.PathLike[str], defaults: Any = _MISSING) -> Any:
        """Parse *path* as JSON.

        A missing file returns *defaults* (``None`` when not given).

        Raises:
            ValueError: If the file is not valid JSON.
        """
        text = self.read(path, defaults=None)
        if text is None:
            return None if defaults is _MISSING else defaults
        return json.loads(text)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write_record(self, record: FileRecord) -> None:
        with self.locks(record.path):
            set_modified(record)
            self.store.add(record)

    def write(
        self,
        path: str | os.PathLike[str],
        contents: str | bytes,
        stat: FileStat | None = None,
    ) -> str:
        """Stage *contents* at *path* and return them as text.

        Writing what an already modified record holds, with the same stat,
        leaves the record alone.

        Raises:
            ValidationError: If *contents* is neither ``str`` nor ``bytes``.
        """
        if not isinstance(contents, (str, bytes, bytearray)):
            raise ValidationError(
                f"Expected contents to be str or bytes, got {type(contents).__name__}"
            )
        data = _encode(contents)
        with self.locks(path):
            record = self.store.get(path)
            changed = (
                not is_modified(record)
                or record.contents != data
                or (stat is not None and record.stat != stat)
            )
            if changed:
                record.contents = data
                if stat is not None:
                    record.stat = stat
                self._write_record(record)
        return data.decode("utf-8", errors="replace")

    def write_json(self, path: str | os.PathLike[str], obj: Any, *, indent: int | None = 2) -> str:
        """Serialize *obj* as JSON with a trailing newline."""
        return self.write(path, json.dumps(obj, indent=indent) + "\n")

    def extend_json(self, path: str | os.PathLike[str], obj: Mapping[str, Any], *, indent: int | None = 2) -> str:
        """Deep-merge *obj* into the JSON object stored at *path*."""
        current = self.read_json(path, defaults={})
        return self.write_json(path, _merge(current, dict(obj)), indent=indent)

    def append(
        self,
        path: str | os.PathLike[str],
        contents: str | bytes,
        *,
        trim_end: bool = True,
        separator: str | bytes = os.linesep,
        create: bool = False,
    ) -> str:
        """Append *contents* to the file at *path*.

        Existing contents lose trailing whitespace when *trim_end* is set,
        then *separator* goes between old and new contents.

        Raises:
            FileNotFoundError: If *path* does not exist and *create* is false.
        """
        with self.locks(path):
            if not self.exists(path):
                if not create:
                    record = self.store.get(path)
                    raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), record.path)
                return self.write(path, contents)
            current = self.read(path, raw=True)
            if trim_end:
                current = current.rstrip()
            return self.write(path, current + _encode(separator) + _encode(contents))

    # ------------------------------------------------------------------
    # Copy / move / delete
    # ------------------------------------------------------------------

    def copy(self, from_, to, *, context=None, tpl_settings=None, **options) -> None:
        """See :func:`stagedfs.copy.copy`."""
        _ops.copy(self, from_, to, context=context, tpl_settings=tpl_settings, **options)

    async def copy_async(self, from_, to, *, context=None, tpl_settings=None, **options) -> None:
        """See :func:`stagedfs.copy.copy_async`."""
        await _ops.copy_async(self, from_, to, context=context, tpl_settings=tpl_settings, **options)

    def copy_tpl(self, from_, to, context=None, tpl_settings=None, **options) -> None:
        """Copy and render templates.

        *context* defaults to an empty mapping, so contents and destination
        paths are always rendered.  Globbed destinations lose a template
        extension such as ``.j2``.
        """
        options.setdefault("process_destination_path", strip_template_suffix)
        self.copy(from_, to, context=context if context is not None else {},
                  tpl_settings=tpl_settings, **options)

    async def copy_tpl_async(self, from_, to, context=None, tpl_settings=None, **options) -> None:
        """Async :meth:`copy_tpl`."""
        options.setdefault("process_destination_path", strip_template_suffix)
        await self.copy_async(from_, to, context=context if context is not None else {},
                              tpl_settings=tpl_settings, **options)

    def move(self, from_, to, **options) -> None:
        """Copy *from_* to *to*, then delete the sources."""
        self.copy(from_, to, **options)
        self.delete(
            from_,
            glob_options=options.get("glob_options"),
            ignore_no_match=options.get("ignore_no_match", False),
        )

    def delete(
        self,
        paths,
        *,
        glob_options: GlobOptions | None = None,
        ignore_no_match: bool = False,
    ) -> list[str]:
        """See :func:`stagedfs.delete.delete`."""
        return _delete.delete(self, paths, glob_options=glob_options, ignore_no_match=ignore_no_match)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit_file(self, record: FileRecord) -> bool:
        return _commit.commit_file(self, record)

    async def commit_file_async(self, record: FileRecord) -> bool:
        return await _commit.commit_file_async(self, record)

    def commit(
        self,
        filter: Callable[[FileRecord], bool] | None = None,
        *,
        ignore_errors: bool = False,
    ) -> _commit.CommitReport:
        """See :func:`stagedfs.commit.commit`."""
        return _commit.commit(self, filter, ignore_errors=ignore_errors)

    async def commit_async(
        self,
        filter: Callable[[FileRecord], bool] | None = None,
        *,
        ignore_errors: bool = False,
    ) -> _commit.CommitReport:
        """See :func:`stagedfs.commit.commit_async`."""
        return await _commit.commit_async(self, filter, ignore_errors=ignore_errors)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def dump(
        self,
        cwd: str | os.PathLike[str] | None = None,
        filter: Callable[[FileRecord], bool] | None = None,
    ) -> dict[str, dict[str, str | None]]:
        """Describe every pending record, keyed by path relative to *cwd*.

        Example:
            >>> editor.dump("/project")
            {'src/app.py': {'contents': 'print(1)\\n', 'state': 'modified'}}
        """
        base = os.path.abspath(os.fspath(cwd)) if cwd is not None else os.getcwd()
        result: dict[str, dict[str, str | None]] = {}

        def visit(record: FileRecord) -> None:
            if not is_pending(record) or (filter is not None and not filter(record)):
                return
            rel = PurePath(os.path.relpath(record.path, base)).as_posix()
            contents = record.contents
            result[rel] = {
                "contents": contents.decode("utf-8", errors="replace") if contents is not None else None,
                "state": str(record.state),
            }

        self.store.each(visit)
        return result
