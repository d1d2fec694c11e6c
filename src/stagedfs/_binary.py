"""Binary-content sniffing: decides whether a file may be template-rendered."""

from __future__ import annotations

import os

_SNIFF_BYTES = 8000

BINARY_EXTENSIONS = frozenset({
    "7z", "a", "avi", "bin", "bmp", "bz2", "class", "dat", "db", "dll",
    "dmg", "doc", "docx", "dylib", "eot", "exe", "flac", "gif", "gz",
    "ico", "icns", "iso", "jar", "jpeg", "jpg", "lib", "mov", "mp3", "mp4",
    "o", "obj", "ogg", "otf", "pdf", "png", "ppt", "pptx", "psd", "pyc",
    "so", "sqlite", "tar", "tgz", "tif", "tiff", "ttf", "wasm", "wav",
    "webm", "webp", "whl", "woff", "woff2", "xls", "xlsx", "xz", "zip",
})

TEXT_EXTENSIONS = frozenset({
    "c", "cfg", "cpp", "css", "csv", "ejs", "env", "go", "h", "hpp", "html",
    "ini", "j2", "java", "jinja", "jinja2", "js", "json", "jsx", "kt", "less",
    "md", "mjs", "py", "rb", "rs", "rst", "scss", "sh", "sql", "svg", "toml",
    "ts", "tsx", "txt", "vue", "xml", "yaml", "yml",
})


def _extension(filename: str | None) -> str:
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lstrip(".").lower()


def _looks_binary(chunk: bytes) -> bool:
    if not chunk:
        return False
    if b"\x00" in chunk:
        return True
    try:
        chunk.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte character cut off at the sniff boundary is still text
        if not (exc.reason == "unexpected end of data" and exc.start >= len(chunk) - 3):
            return True
    control = sum(
        1 for b in chunk
        if b < 0x20 and b not in (0x09, 0x0A, 0x0C, 0x0D, 0x1B)
    )
    return control / len(chunk) > 0.1


def is_binary(contents: bytes | None, filename: str | None = None) -> bool:
    """Classify *contents* as binary (True) or text (False).

    A known extension decides first, then the first 8000 bytes are
    sniffed for NUL bytes, invalid UTF-8, and control characters.
    """
    ext = _extension(filename)
    if ext in BINARY_EXTENSIONS:
        return True
    if ext in TEXT_EXTENSIONS:
        return False
    if contents is None:
        return False
    return _looks_binary(contents[:_SNIFF_BYTES])
