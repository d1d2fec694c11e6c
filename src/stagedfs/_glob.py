"""Dotfile-aware glob classification, expansion, and matching.

The same segment matcher drives both sides of a glob copy: expansion
against the real filesystem and matching of in-memory records, so a
pattern selects the same paths whether they live on disk or only in the
store.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from fnmatch import fnmatch as _fnmatch
from typing import Iterable, Iterator, Sequence

from ._exclude import ExcludeFilter
from .exceptions import ValidationError

_DYNAMIC_RE = re.compile(r"[*?]|\[[^\]/]+\]|\{[^{}]*,[^{}]*\}|[@!+]\(")


@dataclass
class GlobOptions:
    """Options applied to every glob expansion of a copy or delete.

    Attributes:
        ignore: Glob patterns removed from the results.
        dot: Let ``*``, ``?`` and ``**`` match names starting with ``.``.
        exclude: Gitignore-style patterns, relative to each pattern's
            literal root directory.
        gitignore: Honor ``.gitignore`` files found below that root.
    """
    ignore: list[str] = field(default_factory=list)
    dot: bool = False
    exclude: list[str] = field(default_factory=list)
    gitignore: bool = False


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def to_posix(path: str | os.PathLike[str]) -> str:
    p = os.fspath(path)
    if os.sep != "/":
        p = p.replace(os.sep, "/")
    return p


def is_negation(pattern: str) -> bool:
    return pattern.startswith("!") and not pattern.startswith("!(")


def is_dynamic_pattern(pattern: str) -> bool:
    """True if *pattern* contains glob syntax rather than naming one path."""
    if is_negation(pattern):
        pattern = pattern[1:]
    return _DYNAMIC_RE.search(to_posix(pattern)) is not None


def _split_top_level(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in body:
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current += ch
    parts.append(current)
    return parts


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives; ``"x.{js,ts}"`` -> ``["x.js", "x.ts"]``."""
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                parts = _split_top_level(pattern[start + 1:i])
                if len(parts) < 2:
                    continue
                head, tail = pattern[:start], pattern[i + 1:]
                result: list[str] = []
                for part in parts:
                    for expanded in expand_braces(head + part + tail):
                        if expanded not in result:
                            result.append(expanded)
                return result
    return [pattern]


def globify(paths: str | Sequence[str]) -> list[str]:
    """Turn literal paths into patterns that select the files they denote.

    A dynamic pattern or an existing file is kept as-is, an existing
    directory becomes ``dir/**``.  A path that does not exist is ambiguous
    and matches both a file and a directory of that name.
    """
    if not isinstance(paths, str):
        return [p for path in paths for p in globify(path)]
    if is_negation(paths) or is_dynamic_pattern(paths):
        return [to_posix(paths)]
    p = to_posix(paths)
    if not os.path.exists(paths):
        return [p, p.rstrip("/") + "/**"]
    if os.path.isfile(paths):
        return [p]
    if os.path.isdir(paths):
        return [p.rstrip("/") + "/**"]
    raise ValidationError(f"Only file or directory paths are supported: {paths}")


# ---------------------------------------------------------------------------
# Segment matching
# ---------------------------------------------------------------------------

def _glob_match(pattern: str, name: str, dot: bool = False) -> bool:
    """Match *name* against a glob *pattern* segment.

    ``*`` and ``?`` do not match a leading ``.`` unless the pattern itself
    starts with ``.`` (Unix/rsync convention) or *dot* is set.
    """
    if not dot and name.startswith(".") and not pattern.startswith("."):
        return False
    return _fnmatch(name, pattern)


def _match_segments(pat: list[str], parts: list[str], dot: bool) -> bool:
    if not pat:
        return not parts
    seg = pat[0]
    if seg == "**":
        # Zero directories, then one or more
        if _match_segments(pat[1:], parts, dot):
            return True
        if parts and (dot or not parts[0].startswith(".")):
            return _match_segments(pat, parts[1:], dot)
        return False
    if not parts or not _glob_match(seg, parts[0], dot):
        return False
    return _match_segments(pat[1:], parts[1:], dot)


def _absolute_pattern(pattern: str) -> str:
    pattern = to_posix(pattern)
    if os.path.isabs(pattern):
        return pattern
    return to_posix(os.getcwd()).rstrip("/") + "/" + pattern


def _compile(patterns: Iterable[str]) -> tuple[list[list[str]], list[list[str]]]:
    """Split into (positive, negative) segment lists, braces expanded."""
    positive: list[list[str]] = []
    negative: list[list[str]] = []
    for pattern in patterns:
        target = negative if is_negation(pattern) else positive
        body = pattern[1:] if is_negation(pattern) else pattern
        for alt in expand_braces(_absolute_pattern(body)):
            target.append(alt.split("/"))
    return positive, negative


def match_path(path: str, patterns: Sequence[str], *, dot: bool = False) -> bool:
    """True if *path* is selected by *patterns*.

    Negated patterns (``!pattern``) remove whatever the positive patterns
    selected, so a path matches when it hits a positive pattern and no
    negated one.
    """
    parts = to_posix(os.path.abspath(path)).split("/")
    positive, negative = _compile(patterns)
    if not any(_match_segments(pat, parts, dot) for pat in positive):
        return False
    return not any(_match_segments(pat, parts, True) for pat in negative)


def match(paths: Sequence[str], patterns: Sequence[str], *, dot: bool = False) -> list[bool]:
    """Return one :func:`match_path` result per entry of *paths*."""
    return [match_path(p, patterns, dot=dot) for p in paths]


# ---------------------------------------------------------------------------
# Disk-side expansion
# ---------------------------------------------------------------------------

def _literal_root(segments: list[str]) -> str:
    """Directory holding everything a pattern can match."""
    literal: list[str] = []
    for seg in segments[:-1]:
        if is_dynamic_pattern(seg) or seg == "**":
            break
        literal.append(seg)
    root = "/".join(literal)
    return root or "/"


def _disk_glob_walk(segments: list[str], prefix: str, dot: bool) -> Iterator[str]:
    seg = segments[0]
    rest = segments[1:]

    scan_dir = prefix or "."

    if seg == "**":
        try:
            entries = sorted(os.listdir(scan_dir))
        except (FileNotFoundError, NotADirectoryError, PermissionError):
            return
        if rest:
            yield from _disk_glob_walk(rest, prefix, dot)
        else:
            for name in entries:
                if dot or not name.startswith("."):
                    yield os.path.join(prefix, name)
        for name in entries:
            if not dot and name.startswith("."):
                continue
            full = os.path.join(prefix, name)
            if os.path.isdir(full) and not os.path.islink(full):
                yield from _disk_glob_walk(segments, full, dot)
    elif is_dynamic_pattern(seg):
        try:
            entries = sorted(os.listdir(scan_dir))
        except (FileNotFoundError, NotADirectoryError, PermissionError):
            return
        for name in entries:
            if not _glob_match(seg, name, dot):
                continue
            full = os.path.join(prefix, name)
            if rest:
                yield from _disk_glob_walk(rest, full, dot)
            else:
                yield full
    else:
        full = os.path.join(prefix, seg) if prefix else seg
        if rest:
            yield from _disk_glob_walk(rest, full, dot)
        elif os.path.lexists(full):
            yield full


def _expand_disk_glob(pattern: str, dot: bool = False) -> Iterator[str]:
    """Expand one brace-free absolute pattern against the local filesystem."""
    pattern = pattern.rstrip("/")
    if not pattern:
        return
    drive, rest = os.path.splitdrive(pattern)
    root = (drive + "/") if drive else "/"
    rest = rest.lstrip("/")
    if not rest:
        return
    yield from _disk_glob_walk(rest.split("/"), root, dot)


def _filters_for(options: GlobOptions, root: str) -> ExcludeFilter | None:
    if not options.exclude and not options.gitignore:
        return None
    return ExcludeFilter(root, patterns=options.exclude, gitignore=options.gitignore)


def is_filtered(path: str, patterns: Sequence[str], options: GlobOptions) -> bool:
    """True if *options* or a negated pattern removes *path* from a match.

    *patterns* are the patterns that matched; the exclude root is the
    literal root of the first one that selects *path*.
    """
    norm = to_posix(os.path.abspath(path))
    parts = norm.split("/")
    positive, negative = _compile(patterns)
    if any(_match_segments(pat, parts, True) for pat in negative):
        return True
    if options.ignore:
        ignore_pos, _ = _compile(options.ignore)
        if any(_match_segments(pat, parts, True) for pat in ignore_pos):
            return True
    if options.exclude or options.gitignore:
        for pat in positive:
            if _match_segments(pat, parts, options.dot):
                root = _literal_root(pat)
                filt = _filters_for(options, root)
                rel = os.path.relpath(norm, root).replace(os.sep, "/")
                return filt is not None and not rel.startswith("..") and filt.is_excluded(rel)
    return False


def expand(patterns: Sequence[str], options: GlobOptions | None = None) -> list[str]:
    """Expand *patterns* against the real filesystem.

    Returns absolute, OS-native paths of regular files only, deduplicated,
    in pattern order.  Negated patterns and *options* filter the result.
    """
    options = options or GlobOptions()
    positive, negative = _compile(patterns)
    ignore_pos, _ = _compile(options.ignore) if options.ignore else ([], [])
    results: dict[str, str] = {}
    for pat in positive:
        root = _literal_root(pat)
        filt = _filters_for(options, root)
        for found in _expand_disk_glob("/".join(pat), options.dot):
            if not os.path.isfile(found):
                continue
            full = os.path.abspath(found)
            norm = to_posix(full)
            if norm in results:
                continue
            parts = norm.split("/")
            if any(_match_segments(n, parts, True) for n in negative):
                continue
            if any(_match_segments(i, parts, True) for i in ignore_pos):
                continue
            if filt is not None:
                rel = os.path.relpath(norm, root).replace(os.sep, "/")
                if filt.is_excluded(rel):
                    continue
            results[norm] = full
    return list(results.values())
