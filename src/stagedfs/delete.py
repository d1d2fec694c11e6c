"""Delete engine: tombstone store records by literal path or pattern."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from ._glob import (
    GlobOptions,
    expand,
    globify,
    is_dynamic_pattern,
    is_filtered,
    is_negation,
    match_path,
)
from .copy._resolve import as_source_list, scan_store
from .exceptions import NoMatchError
from .state import is_deleted, set_deleted
from .store import normalize_path

if TYPE_CHECKING:
    from .editor import Editor

logger = logging.getLogger(__name__)


def _tombstone(editor: Editor, path: str) -> None:
    store = editor.store
    with editor.locks(path):
        record = store.get(path)
        set_deleted(record)
        store.add(record)
    logger.debug("Deleted %s", record.path)


def _matches_tombstone(editor: Editor, patterns: list[str], options: GlobOptions) -> bool:
    found = False

    def visit(record) -> None:
        nonlocal found
        if not found and is_deleted(record):
            norm = normalize_path(record.path)
            found = match_path(norm, patterns, dot=options.dot) and not is_filtered(norm, patterns, options)

    editor.store.each(visit)
    return found


def delete(
    editor: Editor,
    paths,
    *,
    glob_options: GlobOptions | None = None,
    ignore_no_match: bool = False,
) -> list[str]:
    """Tombstone every file selected by *paths*; return the deleted paths.

    A literal path loaded in the store with contents is deleted directly.
    One that is already tombstoned is skipped, so deleting twice is a
    no-op.  Everything else is expanded as a glob against disk and the
    store.  A literal path that matches nothing is ignored; a dynamic
    pattern that matches nothing raises :class:`NoMatchError` unless
    *ignore_no_match* is set.
    """
    options = glob_options or GlobOptions()
    store = editor.store
    exists_in_memory = getattr(store, "exists_in_memory", None)
    on_store: list[str] = []
    not_found: list[str] = []
    for raw in as_source_list(paths):
        if is_negation(raw):
            not_found.append("!" + os.path.abspath(raw[1:]))
            continue
        path = os.path.abspath(raw)
        if exists_in_memory is None or not exists_in_memory(path):
            not_found.append(path)
            continue
        record = store.get(path)
        if record.contents is not None:
            on_store.append(path)
        elif not is_deleted(record):
            not_found.append(path)

    deleted: dict[str, None] = {}
    # Matches that are pending deletion already still count as matches
    already_deleted = False
    if not_found:
        patterns = globify(not_found)
        for file in expand(patterns, options):
            record = store.get(file)
            if record.contents is None:
                already_deleted = True
                continue
            deleted.setdefault(record.path)
        for file in scan_store(editor, patterns, options):
            deleted.setdefault(file)
        if not deleted:
            already_deleted = already_deleted or _matches_tombstone(editor, patterns, options)

    for path in on_store:
        deleted.setdefault(path)

    if not deleted and not already_deleted and not ignore_no_match:
        dynamic = [p for p in as_source_list(paths) if is_dynamic_pattern(p)]
        if dynamic:
            raise NoMatchError(f"Trying to delete from a pattern that matched nothing: {dynamic}")

    for path in deleted:
        _tombstone(editor, path)
    return list(deleted)
