"""Gitignore-style exclusion for glob expansion.

Combines ``GlobOptions.exclude`` patterns with ``.gitignore`` files found
below a pattern's literal root into a single predicate used by
:func:`stagedfs._glob.expand` and the store scans that mirror it.

Pattern syntax follows gitignore rules (implemented by
``dulwich.ignore.IgnoreFilter``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from dulwich.ignore import IgnoreFilter


class ExcludeFilter:
    """Exclusion rules evaluated relative to one root directory."""

    def __init__(
        self,
        root: str,
        *,
        patterns: Sequence[str] | None = None,
        gitignore: bool = False,
    ) -> None:
        self.root = Path(root)
        base_lines = [p.encode("utf-8") for p in patterns or ()]
        self._base: IgnoreFilter | None = (
            IgnoreFilter(base_lines) if base_lines else None
        )
        self._gitignore = gitignore
        # {rel_dir: IgnoreFilter | None}, loaded lazily per directory
        self._dir_filters: dict[str, IgnoreFilter | None] = {}

    @property
    def active(self) -> bool:
        """True if any filtering is configured."""
        return self._base is not None or self._gitignore

    def _enter_directory(self, rel_dir: str) -> None:
        if rel_dir in self._dir_filters:
            return
        gi = self.root / rel_dir / ".gitignore" if rel_dir else self.root / ".gitignore"
        if gi.is_file():
            self._dir_filters[rel_dir] = IgnoreFilter.from_path(str(gi))
        else:
            self._dir_filters[rel_dir] = None

    def is_excluded(self, rel_path: str) -> bool:
        """Check a root-relative POSIX file path against every rule."""
        parts = rel_path.split("/")
        if self._base is not None:
            if self._base.is_ignored(rel_path) is True:
                return True
            # A file inside an excluded directory is excluded too
            for depth in range(1, len(parts)):
                if self._base.is_ignored("/".join(parts[:depth]) + "/") is True:
                    return True

        if not self._gitignore:
            return False

        if parts[-1] == ".gitignore":
            return True

        # Each .gitignore checks the path relative to its own directory.
        # The deepest one with a matching rule decides.
        for depth in range(len(parts)):
            self._enter_directory("/".join(parts[:depth]))
        for depth in reversed(range(len(parts))):
            dir_key = "/".join(parts[:depth])
            filt = self._dir_filters.get(dir_key)
            if filt is None:
                continue
            result = _check(filt, parts[depth:])
            if result is True:
                return True
            if result is False:
                return False

        return False


def _check(filt: IgnoreFilter, parts: list[str]) -> bool | None:
    """Check the ancestor directories of *parts*, then the file itself."""
    for depth in range(1, len(parts)):
        result = filt.is_ignored("/".join(parts[:depth]) + "/")
        if result is not None:
            return result
    return filt.is_ignored("/".join(parts))
