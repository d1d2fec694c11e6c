"""Tests for Editor.delete()."""

import pytest

from stagedfs import FileState, GlobOptions, NoMatchError, ValidationError


class TestDeleteLiteral:
    def test_disk_file(self, editor, fixtures):
        deleted = editor.delete("src/file-a.txt")
        assert deleted == [str(fixtures / "src" / "file-a.txt")]
        rec = editor.store.get("src/file-a.txt")
        assert rec.state is FileState.DELETED
        assert rec.contents is None
        assert editor.exists("src/file-a.txt") is False
        # Disk untouched until commit
        assert (fixtures / "src" / "file-a.txt").exists()

    def test_store_only_file(self, editor, fixtures):
        editor.write("new.txt", "x")
        editor.delete("new.txt")
        assert editor.exists("new.txt") is False
        assert editor.store.get("new.txt").state is FileState.DELETED

    def test_twice_is_noop(self, editor, fixtures):
        editor.delete("src/file-a.txt")
        assert editor.delete("src/file-a.txt") == []
        assert editor.store.get("src/file-a.txt").state is FileState.DELETED

    def test_missing_is_noop(self, editor, fixtures):
        assert editor.delete("nope.txt") == []

    def test_list(self, editor, fixtures):
        editor.delete(["src/file-a.txt", "src/file-b.txt"])
        assert not editor.exists("src/file-a.txt")
        assert not editor.exists("src/file-b.txt")

    def test_directory(self, editor, fixtures):
        editor.delete("src")
        assert not editor.exists("src/file-a.txt")
        assert not editor.exists("src/nested/deep.txt")
        # Dotfiles need GlobOptions(dot=True)
        assert editor.exists("src/.hidden")

    def test_directory_with_dotfiles(self, editor, fixtures):
        editor.delete("src", glob_options=GlobOptions(dot=True))
        assert not editor.exists("src/.hidden")

    def test_virtual_directory(self, editor, fixtures):
        editor.write("gen/a.txt", "a")
        editor.write("gen/sub/b.txt", "b")
        editor.delete("gen")
        assert not editor.exists("gen/a.txt")
        assert not editor.exists("gen/sub/b.txt")

    def test_invalid_input(self, editor, fixtures):
        with pytest.raises(ValidationError):
            editor.delete(3.14)


class TestDeletePattern:
    def test_glob(self, editor, fixtures):
        editor.delete("src/*.txt")
        assert not editor.exists("src/file-a.txt")
        assert not editor.exists("src/file-b.txt")
        assert editor.exists("src/nested/deep.txt")

    def test_glob_includes_virtual(self, editor, fixtures):
        editor.write("src/virtual.txt", "v")
        editor.delete("src/*.txt")
        assert not editor.exists("src/virtual.txt")

    def test_negation(self, editor, fixtures):
        editor.delete(["src/*.txt", "!src/file-b.txt"])
        assert not editor.exists("src/file-a.txt")
        assert editor.exists("src/file-b.txt")

    def test_ignore(self, editor, fixtures):
        editor.delete("src/**", glob_options=GlobOptions(ignore=["**/*.png"]))
        assert editor.exists("src/logo.png")
        assert not editor.exists("src/tpl.txt.j2")

    def test_no_match_raises(self, editor, fixtures):
        with pytest.raises(NoMatchError):
            editor.delete("src/*.md")

    def test_no_match_ignored(self, editor, fixtures):
        assert editor.delete("src/*.md", ignore_no_match=True) == []

    def test_glob_twice_is_noop(self, editor, fixtures):
        first = editor.delete("src/*.txt")
        assert len(first) == 2
        assert editor.delete("src/*.txt") == []

    def test_virtual_glob_twice_is_noop(self, editor, fixtures):
        editor.write("gen/a.md", "a")
        editor.delete("gen/*.md")
        assert editor.delete("gen/*.md") == []


class TestDeleteCommit:
    def test_commit_removes_file(self, editor, fixtures):
        editor.delete("src/file-a.txt")
        editor.commit()
        assert not (fixtures / "src" / "file-a.txt").exists()
        assert editor.store.get("src/file-a.txt").state is FileState.UNMODIFIED

    def test_delete_then_write(self, editor, fixtures):
        editor.delete("src/file-a.txt")
        editor.write("src/file-a.txt", "again")
        editor.commit()
        assert (fixtures / "src" / "file-a.txt").read_text() == "again"
