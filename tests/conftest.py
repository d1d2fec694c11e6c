"""Shared fixtures for stagedfs tests."""

import pytest

import stagedfs


@pytest.fixture
def editor():
    """A fresh editor over an empty MemoryStore."""
    return stagedfs.create()


@pytest.fixture
def fixtures(tmp_path, monkeypatch):
    """A small source tree; the working directory is tmp_path.

    Layout::

        src/file-a.txt      "foo\\n"
        src/file-b.txt      "bar\\n"
        src/nested/deep.txt "deep\\n"
        src/.hidden         "secret\\n"
        src/logo.png        PNG header bytes
        src/tpl.txt.j2      "Hello {{ name }}\\n"
    """
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "src"
    (src / "nested").mkdir(parents=True)
    (src / "file-a.txt").write_text("foo\n")
    (src / "file-b.txt").write_text("bar\n")
    (src / "nested" / "deep.txt").write_text("deep\n")
    (src / ".hidden").write_text("secret\n")
    (src / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR{{ name }}")
    (src / "tpl.txt.j2").write_text("Hello {{ name }}\n")
    return tmp_path
