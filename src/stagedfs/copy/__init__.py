"""Copy files into the store from disk, from the store, or both.

Sources may be literal paths, lists of paths, or glob patterns (``*``,
``?``, ``[...]``, ``{a,b}``, ``**``, ``!negation``) with dotfile-aware
matching.  Patterns select on-disk files and files that only exist in the
store alike.
"""

from ._types import (
    ChangeError,
    CopyOptions,
    CopyPlan,
    CopyTarget,
    SourceKind,
    SourceSpec,
)
from ._resolve import (
    classify,
    get_common_path,
    plan_copy,
    reconcile,
    resolve_sources,
    scan_store,
)
from ._ops import (
    copy,
    copy_async,
    copy_single,
    copy_single_async,
)

__all__ = [
    # Public types
    "ChangeError", "CopyOptions", "CopyPlan", "CopyTarget", "SourceKind", "SourceSpec",
    # Public functions
    "copy", "copy_async", "copy_single", "copy_single_async",
    "plan_copy", "get_common_path", "resolve_sources", "classify", "reconcile",
    "scan_store",
]
