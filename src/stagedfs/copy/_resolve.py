"""Source resolution, classification, and glob/store reconciliation."""

from __future__ import annotations

import logging
import os
import re
from typing import TYPE_CHECKING, Sequence

from .._glob import (
    GlobOptions,
    expand,
    globify,
    is_dynamic_pattern,
    is_filtered,
    is_negation,
    match_path,
)
from .._template import render_path
from ..exceptions import DestinationShapeError, NoMatchError, ValidationError
from ..record import FileRecord
from ..store import normalize_path
from ._types import CopyOptions, CopyPlan, CopyTarget, SourceKind, SourceSpec

if TYPE_CHECKING:
    from ..editor import Editor

logger = logging.getLogger(__name__)

_GLOB_START = re.compile(r"[*?\[{]")


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def as_source_list(from_) -> list[str]:
    """Validate *from_* and return it as a list of path strings."""
    if isinstance(from_, (str, os.PathLike)):
        return [os.fspath(from_)]
    if isinstance(from_, (list, tuple)):
        items = []
        for item in from_:
            if not isinstance(item, (str, os.PathLike)):
                raise ValidationError(
                    f"Copy sources must be strings or paths, got {type(item).__name__}"
                )
            items.append(os.fspath(item))
        return items
    raise ValidationError(
        f"Expected a path or a list of paths, got {type(from_).__name__}"
    )


def is_multiple(from_) -> bool:
    return isinstance(from_, (list, tuple))


def get_common_path(from_) -> str:
    """Return the directory that destination layout is computed from.

    For a pattern this is the directory above its first glob character,
    for an existing directory the directory itself, otherwise the
    containing directory.  Several sources share their deepest common
    directory; negations are ignored.
    """
    if is_multiple(from_):
        bases = [get_common_path(f) for f in as_source_list(from_) if f and not is_negation(f)]
        if not bases:
            return os.getcwd()
        return os.path.commonpath(bases)
    path = os.path.abspath(as_source_list(from_)[0])
    m = _GLOB_START.search(path)
    if m is not None:
        return os.path.dirname(path[:m.start() + 1])
    if os.path.isdir(path):
        return path
    return os.path.dirname(path)


def resolve_sources(from_) -> list[SourceSpec]:
    """Resolve every source specifier to its absolute, classified form."""
    specs: list[SourceSpec] = []
    for raw in as_source_list(from_):
        if not raw:
            continue
        if is_negation(raw):
            specs.append(SourceSpec(raw, "!" + os.path.abspath(raw[1:]), SourceKind.NEGATION))
        elif is_dynamic_pattern(raw):
            specs.append(SourceSpec(raw, os.path.abspath(raw), SourceKind.PATTERN))
        else:
            specs.append(SourceSpec(raw, os.path.abspath(raw), SourceKind.LITERAL))
    return specs


# ---------------------------------------------------------------------------
# Source classification
# ---------------------------------------------------------------------------

def in_store(editor: Editor, path: str) -> bool:
    """True if *path* is loaded in the store with real contents."""
    exists_in_memory = getattr(editor.store, "exists_in_memory", None)
    if exists_in_memory is None or not exists_in_memory(path):
        return False
    return editor.store.get(path).contents is not None


def _tombstoned(editor: Editor, path: str) -> bool:
    exists_in_memory = getattr(editor.store, "exists_in_memory", None)
    if exists_in_memory is None or not exists_in_memory(path):
        return False
    return editor.store.get(path).contents is None


def classify(editor: Editor, specs: list[SourceSpec]) -> tuple[list[str], list[SourceSpec]]:
    """Partition *specs* into store-resident literal files and glob candidates."""
    store_files: list[str] = []
    glob_specs: list[SourceSpec] = []
    for spec in specs:
        if spec.is_literal and in_store(editor, spec.resolved):
            store_files.append(spec.resolved)
        else:
            glob_specs.append(spec)
    return store_files, glob_specs


def one_file(editor: Editor, from_) -> str | None:
    """Return the absolute path if *from_* names one existing disk file."""
    if is_multiple(from_):
        return None
    resolved = os.path.abspath(os.fspath(from_))
    try:
        if not os.path.isfile(resolved):
            return None
    except OSError:
        return None
    if _tombstoned(editor, resolved):
        return None
    return resolved


# ---------------------------------------------------------------------------
# Glob/store reconciliation
# ---------------------------------------------------------------------------

def _store_records(editor: Editor) -> list[FileRecord]:
    records: list[FileRecord] = []
    editor.store.each(records.append)
    return records


def scan_store(
    editor: Editor,
    patterns: Sequence[str],
    options: GlobOptions,
    skip: set[str] | None = None,
) -> list[str]:
    """Return paths of store records with contents that *patterns* select.

    Records whose normalized path is in *skip*, or is itself a glob
    pattern, are left out.
    """
    skip = skip if skip is not None else set()
    found: list[str] = []
    for record in _store_records(editor):
        if record.contents is None:
            continue
        norm = normalize_path(record.path)
        # The store may hold a record keyed by a glob pattern; it is no real file
        if norm in skip or is_dynamic_pattern(norm):
            continue
        if not match_path(norm, patterns, dot=options.dot):
            continue
        if is_filtered(norm, patterns, options):
            continue
        skip.add(norm)
        found.append(record.path)
    return found


def reconcile(
    editor: Editor,
    specs: list[SourceSpec],
    options: GlobOptions | None = None,
) -> tuple[list[str], list[str]]:
    """Expand *specs* on disk and in the store.

    Returns ``(disk_files, virtual_files)``.  A path found on disk is never
    repeated as a virtual match; disk files tombstoned in the store are
    dropped.
    """
    options = options or GlobOptions()
    patterns = globify([s.resolved for s in specs])
    disk_files = [p for p in expand(patterns, options) if not _tombstoned(editor, p)]
    seen = {normalize_path(p) for p in disk_files}
    virtual_files = scan_store(editor, patterns, options, seen)
    logger.debug(
        "Patterns %s matched %d disk and %d virtual files",
        patterns, len(disk_files), len(virtual_files),
    )
    return disk_files, virtual_files


# ---------------------------------------------------------------------------
# Copy planning
# ---------------------------------------------------------------------------

def plan_copy(editor: Editor, from_, to: str | os.PathLike[str], opts: CopyOptions) -> CopyPlan:
    """Resolve a multi-source copy into a flat list of :class:`CopyTarget`."""
    to = os.path.abspath(os.fspath(to))
    base = get_common_path(from_)
    specs = resolve_sources(from_)
    has_dynamic_pattern = any(not s.is_literal for s in specs)
    prefer_files = not has_dynamic_pattern and opts.glob_options is None

    store_files, glob_specs = classify(editor, specs)
    disk_files: list[str] = []
    virtual_files = list(store_files)
    if glob_specs:
        disk_files, extra = reconcile(editor, glob_specs, opts.glob_options)
        seen = {normalize_path(p) for p in virtual_files}
        virtual_files.extend(p for p in extra if normalize_path(p) not in seen)

    if not (opts.ignore_no_match or disk_files or virtual_files):
        raise NoMatchError(f"Trying to copy from a source that does not exist: {from_}")

    # Several sources, a pattern, or a source that is not a loaded file
    # all mean `to` is a directory.
    to_is_dir = is_multiple(from_) or not prefer_files or bool(glob_specs)
    if to_is_dir:
        if editor.exists(to) and not os.path.isdir(to):
            raise DestinationShapeError(
                f"When copying multiple files, provide a directory as destination: {to}"
            )
        process = opts.process_destination_path or (lambda p: p)

        def destination(path: str) -> str:
            return process(os.path.join(to, os.path.relpath(path, base)))
    else:
        def destination(path: str) -> str:
            return to

    def target(path: str, virtual: bool) -> CopyTarget:
        dest = render_path(destination(path), opts.context, opts.tpl_settings)
        return CopyTarget(path, os.path.abspath(dest), virtual)

    return CopyPlan(
        targets=[target(p, False) for p in disk_files] + [target(p, True) for p in virtual_files],
        base=base,
        to_is_dir=to_is_dir,
    )
