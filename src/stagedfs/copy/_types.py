"""Data structures for copy operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

from .._glob import GlobOptions


class SourceKind(str, Enum):
    """How a source specifier is interpreted.

    Members: ``LITERAL``, ``PATTERN``, ``NEGATION``.
    """
    LITERAL = "literal"
    PATTERN = "pattern"
    NEGATION = "negation"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True)
class SourceSpec:
    """One entry of a copy's ``from_`` argument, resolved.

    Attributes:
        raw: The specifier as given by the caller.
        resolved: Absolute form (``!``-prefixed for negations).
        kind: :class:`SourceKind` of the specifier.
    """
    raw: str
    resolved: str
    kind: SourceKind

    @property
    def is_literal(self) -> bool:
        return self.kind is SourceKind.LITERAL


@dataclass(frozen=True)
class CopyTarget:
    """A single file copy produced by resolution.

    Attributes:
        source: Absolute source path.
        destination: Absolute destination path, already path-rendered.
        virtual: ``True`` when the source only exists in the store.
    """
    source: str
    destination: str
    virtual: bool = False


@dataclass
class CopyPlan:
    """Resolved copy: the flat target list plus how ``to`` was interpreted.

    Attributes:
        targets: Disk matches first, then virtual matches.
        base: Common base directory of the literal sources.
        to_is_dir: Whether ``to`` was treated as a directory.
    """
    targets: list[CopyTarget] = field(default_factory=list)
    base: str = ""
    to_is_dir: bool = False


@dataclass
class CopyOptions:
    """Per-call copy configuration.

    Attributes:
        context: Template context; ``None`` disables all rendering.
        tpl_settings: ``jinja2.Environment`` options used for rendering.
        process: ``(contents, source, destination) -> str | bytes`` applied
            to the contents of every copied file.
        process_file: Async-copy hook ``(source) -> str | bytes`` (or an
            awaitable of one) that produces the contents of disk sources.
        append: Append to a destination already in the store.
        trim_end: When appending, strip trailing whitespace first.
        separator: When appending, inserted between old and new contents.
        glob_options: :class:`~stagedfs._glob.GlobOptions` for expansion.
        process_destination_path: Rewrites destination paths of directory
            copies before they are rendered.
        ignore_no_match: Make a copy that matches nothing a no-op.
    """
    context: Mapping[str, Any] | None = None
    tpl_settings: Mapping[str, Any] | None = None
    process: Callable[[bytes, str, str], str | bytes] | None = None
    process_file: Callable[[str], str | bytes | Awaitable[str | bytes]] | None = None
    append: bool = False
    trim_end: bool = False
    separator: str = ""
    glob_options: GlobOptions | None = None
    process_destination_path: Callable[[str], str] | None = None
    ignore_no_match: bool = False


@dataclass
class ChangeError:
    """A file that failed during an operation.

    Attributes:
        path: The path that caused the error.
        error: Human-readable error message.
    """
    path: str
    error: str
