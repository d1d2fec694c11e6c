"""Template rendering for destination paths and text contents (jinja2)."""

from __future__ import annotations

import os
from typing import Any, Mapping

from jinja2 import BaseLoader, Environment, FileSystemLoader, StrictUndefined, Undefined

# Template extensions stripped from destinations of globbed template copies
TEMPLATE_SUFFIXES = (".j2", ".jinja", ".jinja2")


def _environment(settings: Mapping[str, Any] | None, filename: str | None) -> Environment:
    options = dict(settings or {})
    options.setdefault("keep_trailing_newline", True)
    options.setdefault("autoescape", False)
    if options.pop("strict", False):
        options["undefined"] = StrictUndefined
    else:
        options.setdefault("undefined", Undefined)
    if "loader" not in options:
        if filename:
            options["loader"] = FileSystemLoader(os.path.dirname(os.path.abspath(filename)))
        else:
            options["loader"] = BaseLoader()
    return Environment(**options)


def render(
    text: str,
    context: Mapping[str, Any] | None = None,
    settings: Mapping[str, Any] | None = None,
    *,
    filename: str | None = None,
) -> str:
    """Render *text* with *context*.

    *settings* are ``jinja2.Environment`` keyword options (delimiters,
    ``trim_blocks``, ...) plus ``strict``, which makes undefined names an
    error.  When *filename* is given, ``{% include %}`` resolves relative to
    that file's directory.
    """
    env = _environment(settings, filename)
    return env.from_string(text).render(dict(context or {}))


def render_path(
    path: str,
    context: Mapping[str, Any] | None,
    settings: Mapping[str, Any] | None = None,
) -> str:
    """Render a destination path; without a context it is returned as-is."""
    if context is None:
        return path
    return render(path, context, settings)


def strip_template_suffix(path: str) -> str:
    for suffix in TEMPLATE_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path
