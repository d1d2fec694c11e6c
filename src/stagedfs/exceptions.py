"""Exceptions for stagedfs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .commit import CommitReport
    from .copy._types import ChangeError


class StagedFSError(Exception):
    """Base class for errors raised by stagedfs itself."""


class NoMatchError(StagedFSError, FileNotFoundError):
    """Raised when a copy or delete source resolves to no file at all.

    Pass ``ignore_no_match=True`` to turn an empty match into a no-op.
    """


class DestinationShapeError(StagedFSError, NotADirectoryError):
    """Raised when a multi-file copy targets an existing non-directory."""


class IncompatibleStoreError(StagedFSError, TypeError):
    """Raised when append is requested against a store without ``exists_in_memory``."""


class ValidationError(StagedFSError, TypeError):
    """Raised for structurally invalid input (e.g. a source that is not a str or list)."""


class CopyError(StagedFSError):
    """Several files of one copy batch failed.

    Attributes:
        errors: One :class:`~stagedfs.copy.ChangeError` per failed file.
    """

    def __init__(self, errors: list[ChangeError]):
        self.errors = errors
        paths = ", ".join(e.path for e in errors)
        super().__init__(f"{len(errors)} files failed to copy: {paths}")


class CommitFailedError(StagedFSError):
    """One or more records could not be committed.

    Every pending record was attempted; :attr:`report` says which ones
    succeeded and which failed.
    """

    def __init__(self, report: CommitReport):
        self.report = report
        details = "; ".join(f"{e.path}: {e.error}" for e in report.errors)
        super().__init__(f"Failed to commit {len(report.errors)} file(s): {details}")
