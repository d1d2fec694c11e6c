"""Copy operations: single-file materialization and multi-file batches."""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
import os
from typing import TYPE_CHECKING, Iterable

from .._binary import is_binary
from .._template import render, render_path
from ..exceptions import CopyError, IncompatibleStoreError, NoMatchError
from ..record import FileRecord, FileStat
from ..state import FileState
from ._resolve import as_source_list, in_store, one_file, plan_copy
from ._types import ChangeError, CopyOptions, CopyTarget

if TYPE_CHECKING:
    from ..editor import Editor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Content helpers
# ---------------------------------------------------------------------------

def _as_bytes(data: str | bytes | bytearray) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return str(data).encode("utf-8")


def _render_contents(contents: bytes, source: str, opts: CopyOptions) -> bytes:
    """Render text contents when a context is set.

    Binary contents, and text that is not UTF-8, pass through unrendered.
    """
    if opts.context is None or is_binary(contents, source):
        return contents
    try:
        text = contents.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Not rendering %s: contents are not UTF-8", source)
        return contents
    text = render(text, opts.context, opts.tpl_settings, filename=source)
    return text.encode("utf-8")


def _store_copy(
    editor: Editor,
    destination: str,
    contents: bytes,
    *,
    stat: FileStat | None,
    history: list[str],
    opts: CopyOptions,
) -> None:
    """Put copied *contents* at *destination*, honoring append mode."""
    store = editor.store
    if opts.append:
        # Without it, append would silently overwrite
        exists_in_memory = getattr(store, "exists_in_memory", None)
        if exists_in_memory is None:
            raise IncompatibleStoreError("Current store is not compatible with append")
        if exists_in_memory(destination):
            editor.append(
                destination, contents,
                create=True, trim_end=opts.trim_end, separator=opts.separator,
            )
            return

    if not history or history[-1] != destination:
        history = [*history, destination]
    editor._write_record(FileRecord(
        path=destination,
        contents=contents,
        state=FileState.MODIFIED,
        stat=dataclasses.replace(stat) if stat is not None else None,
        history=history,
    ))


# ---------------------------------------------------------------------------
# Single file
# ---------------------------------------------------------------------------

def copy_single(editor: Editor, from_: str, to: str, opts: CopyOptions | None = None) -> None:
    """Copy one file (from the store, or from disk through the store) to *to*.

    *to* is used as given; path rendering already happened.
    """
    opts = opts or CopyOptions()
    if not editor.exists(from_):
        raise NoMatchError(f"Trying to copy from a source that does not exist: {from_}")
    record = editor.store.get(from_)
    to = os.path.abspath(to)
    logger.debug("Copying %s to %s", record.path, to)

    contents = record.contents
    if opts.process is not None:
        contents = _as_bytes(opts.process(contents, record.path, to))
    contents = _render_contents(contents, record.path, opts)
    _store_copy(editor, to, contents, stat=record.stat, history=list(record.history), opts=opts)


async def copy_single_async(editor: Editor, from_: str, to: str, opts: CopyOptions | None = None) -> None:
    """Async :func:`copy_single`; runs ``opts.process_file`` on disk sources."""
    opts = opts or CopyOptions()
    if opts.process_file is None:
        # Load the source off the event loop; the copy itself is in-memory
        await asyncio.to_thread(editor.store.get, from_)
        copy_single(editor, from_, to, opts)
        return

    from_ = os.path.abspath(from_)
    to = os.path.abspath(to)
    logger.debug("Copying %s to %s with process_file", from_, to)

    output = opts.process_file(from_)
    if inspect.isawaitable(output):
        output = await output
    contents = _render_contents(_as_bytes(output), from_, opts)

    try:
        st: FileStat | None = FileStat.from_stat_result(await asyncio.to_thread(os.stat, from_))
    except FileNotFoundError:
        st = None
    _store_copy(editor, to, contents, stat=st, history=[from_], opts=opts)


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------

def _raise_failures(targets: list[CopyTarget], results: Iterable[object]) -> None:
    """Re-raise one failure as-is, or several as a :class:`CopyError`."""
    failures = [(t, r) for t, r in zip(targets, results) if isinstance(r, BaseException)]
    for _target, exc in failures:
        if not isinstance(exc, Exception):
            raise exc
    if not failures:
        return
    if len(failures) == 1:
        raise failures[0][1]
    errors = [ChangeError(path=t.source, error=str(exc)) for t, exc in failures]
    raise CopyError(errors) from failures[0][1]


def copy(editor: Editor, from_, to, *, context=None, tpl_settings=None, **kwargs) -> None:
    """Copy *from_* (a path, a list of paths, or glob patterns) to *to*.

    A single source that is an existing file is copied to *to* as a file.
    Otherwise *to* is a directory and every matched file, on disk or only
    in the store, keeps its path relative to the sources' common base.

    Keyword arguments are the fields of
    :class:`~stagedfs.copy._types.CopyOptions` except ``process_file``.
    """
    if "process_file" in kwargs:
        raise TypeError("process_file is only supported by copy_async()")
    as_source_list(from_)
    opts = CopyOptions(context=context, tpl_settings=tpl_settings, **kwargs)

    if not isinstance(from_, (list, tuple)):
        single = from_ if in_store(editor, from_) else one_file(editor, from_)
        if single is not None:
            copy_single(editor, single, render_path(os.fspath(to), context, tpl_settings), opts)
            return

    plan = plan_copy(editor, from_, to, opts)
    results: list[object] = []
    for target in plan.targets:
        try:
            copy_single(editor, target.source, target.destination, opts)
            results.append(None)
        except Exception as exc:
            results.append(exc)
    _raise_failures(plan.targets, results)


async def copy_async(editor: Editor, from_, to, *, context=None, tpl_settings=None, **kwargs) -> None:
    """Async :func:`copy`: every matched file is copied concurrently.

    Supports ``process_file``.  Ordering between files is not defined; a
    failing file does not stop its siblings.
    """
    as_source_list(from_)
    opts = CopyOptions(context=context, tpl_settings=tpl_settings, **kwargs)

    if not isinstance(from_, (list, tuple)):
        # An existing file is copied straight to `to`
        if in_store(editor, from_):
            copy_single(editor, from_, render_path(os.fspath(to), context, tpl_settings), opts)
            return
        single = await asyncio.to_thread(one_file, editor, from_)
        if single is not None:
            await copy_single_async(editor, single, render_path(os.fspath(to), context, tpl_settings), opts)
            return

    plan = await asyncio.to_thread(plan_copy, editor, from_, to, opts)

    async def copy_virtual(target: CopyTarget) -> None:
        copy_single(editor, target.source, target.destination, opts)

    results = await asyncio.gather(
        *(
            copy_virtual(t) if t.virtual
            else copy_single_async(editor, t.source, t.destination, opts)
            for t in plan.targets
        ),
        return_exceptions=True,
    )
    _raise_failures(plan.targets, results)
