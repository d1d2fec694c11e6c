"""Tests for committing pending records to disk."""

import os
import stat

import pytest

from stagedfs import CommitFailedError, FileRecord, FileStat, FileState
from stagedfs.state import set_modified

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")


@pytest.fixture
def chmod_calls(monkeypatch):
    """Record every os.chmod() call."""
    calls = []
    real_chmod = os.chmod

    def counting_chmod(path, mode, *args, **kwargs):
        calls.append((os.fspath(path), mode))
        return real_chmod(path, mode, *args, **kwargs)

    monkeypatch.setattr(os, "chmod", counting_chmod)
    return calls


class TestCommitWrite:
    def test_writes_file(self, editor, tmp_path):
        target = tmp_path / "out" / "deep" / "a.txt"
        editor.write(str(target), "hello")
        report = editor.commit()
        assert target.read_text() == "hello"
        assert report.written == [str(target)]
        assert report.ok

    def test_state_reset_and_stat_refreshed(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        editor.write(str(target), "hello")
        editor.commit()
        rec = editor.store.get(str(target))
        assert rec.state is FileState.UNMODIFIED
        assert rec.stat.size == 5
        assert rec.stat.mtime == os.stat(target).st_mtime

    def test_overwrites_existing(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("old")
        editor.write(str(target), "new")
        editor.commit()
        assert target.read_text() == "new"

    def test_binary(self, editor, tmp_path):
        target = tmp_path / "a.bin"
        editor.write(str(target), b"\x00\x01\xff")
        editor.commit()
        assert target.read_bytes() == b"\x00\x01\xff"

    def test_unmodified_is_noop(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("disk")
        rec = editor.store.get(str(target))
        assert editor.commit_file(rec) is False
        assert editor.commit().total == 0

    def test_second_commit_is_noop(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        editor.write(str(target), "x")
        assert editor.commit().total == 1
        target.write_text("changed behind our back")
        assert editor.commit().total == 0
        assert target.read_text() == "changed behind our back"

    def test_filter(self, editor, tmp_path):
        editor.write(str(tmp_path / "keep.txt"), "k")
        editor.write(str(tmp_path / "skip.txt"), "s")
        report = editor.commit(lambda r: r.path.endswith("keep.txt"))
        assert report.written == [str(tmp_path / "keep.txt")]
        assert not (tmp_path / "skip.txt").exists()
        assert editor.store.get(str(tmp_path / "skip.txt")).state is FileState.MODIFIED

    def test_commit_file_adds_record(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        rec = FileRecord(str(target), b"outside", state=FileState.MODIFIED)
        assert editor.commit_file(rec) is True
        assert target.read_bytes() == b"outside"
        assert editor.store.get(str(target)) is rec

    def test_modified_without_contents_reported_written(self, editor, tmp_path):
        target = tmp_path / "e.txt"
        editor.store.add(FileRecord(str(target), state=FileState.MODIFIED))
        report = editor.commit()
        assert report.written == [str(target)]
        assert report.deleted == []
        assert target.read_bytes() == b""


class TestCommitDelete:
    def test_removes_file(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("x")
        editor.delete(str(target))
        report = editor.commit()
        assert not target.exists()
        assert report.deleted == [str(target)]

    def test_missing_file_is_success(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("x")
        editor.delete(str(target))
        target.unlink()
        report = editor.commit()
        assert report.ok
        assert report.deleted == [str(target)]

    def test_deleted_record_reset(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("x")
        editor.delete(str(target))
        editor.commit()
        rec = editor.store.get(str(target))
        assert rec.state is FileState.UNMODIFIED
        assert rec.contents is None
        assert editor.commit().total == 0


@posix_only
class TestCommitPermissions:
    def test_mode_applied(self, editor, tmp_path, chmod_calls):
        target = tmp_path / "run.sh"
        editor.write(str(target), "#!/bin/sh\n", FileStat(mode=stat.S_IFREG | 0o755))
        editor.commit()
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o755
        assert chmod_calls == [(str(target), 0o755)]

    def test_mode_updated(self, editor, tmp_path):
        target = tmp_path / "run.sh"
        target.write_text("x")
        target.chmod(0o600)
        editor.write(str(target), "y", FileStat(mode=stat.S_IFREG | 0o640))
        editor.commit()
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o640

    def test_unchanged_mode_not_reapplied(self, editor, tmp_path, chmod_calls):
        target = tmp_path / "run.sh"
        editor.write(str(target), "v1", FileStat(mode=stat.S_IFREG | 0o755))
        editor.commit()
        assert len(chmod_calls) == 1
        rec = editor.store.get(str(target))
        rec.contents = b"v2"
        set_modified(rec)
        editor.commit()
        assert target.read_text() == "v2"
        assert len(chmod_calls) == 1

    def test_no_mode_no_chmod(self, editor, tmp_path, chmod_calls):
        editor.write(str(tmp_path / "a.txt"), "x")
        editor.commit()
        assert chmod_calls == []


class TestCommitErrors:
    def test_parent_is_file(self, editor, tmp_path):
        (tmp_path / "a").write_text("i am a file")
        editor.write(str(tmp_path / "a" / "b.txt"), "x")
        with pytest.raises(NotADirectoryError):
            editor.commit_file(editor.store.get(str(tmp_path / "a" / "b.txt")))

    def test_directory_in_the_way(self, editor, tmp_path):
        (tmp_path / "out.txt").mkdir()
        editor.write(str(tmp_path / "out.txt"), "x")
        with pytest.raises(OSError):
            editor.commit_file(editor.store.get(str(tmp_path / "out.txt")))

    def test_failed_record_stays_pending(self, editor, tmp_path):
        (tmp_path / "a").write_text("file")
        path = str(tmp_path / "a" / "b.txt")
        editor.write(path, "x")
        with pytest.raises(CommitFailedError):
            editor.commit()
        assert editor.store.get(path).state is FileState.MODIFIED

    def test_batch_reports_each_failure(self, editor, tmp_path):
        (tmp_path / "a").write_text("file")
        bad = str(tmp_path / "a" / "b.txt")
        good = str(tmp_path / "good.txt")
        editor.write(bad, "x")
        editor.write(good, "y")
        with pytest.raises(CommitFailedError) as exc_info:
            editor.commit()
        report = exc_info.value.report
        assert report.written == [good]
        assert [e.path for e in report.errors] == [bad]
        assert (tmp_path / "good.txt").read_text() == "y"

    def test_ignore_errors(self, editor, tmp_path):
        (tmp_path / "a").write_text("file")
        editor.write(str(tmp_path / "a" / "b.txt"), "x")
        report = editor.commit(ignore_errors=True)
        assert not report.ok
        assert len(report.errors) == 1


class TestCommitAsync:
    @pytest.mark.asyncio
    async def test_commit_async(self, editor, tmp_path):
        for i in range(10):
            editor.write(str(tmp_path / f"f{i}.txt"), str(i))
        editor.delete(str(tmp_path / "f0.txt"))
        report = await editor.commit_async()
        assert len(report.written) == 9
        assert report.deleted == [str(tmp_path / "f0.txt")]
        assert (tmp_path / "f5.txt").read_text() == "5"
        assert not (tmp_path / "f0.txt").exists()

    @pytest.mark.asyncio
    async def test_commit_async_errors(self, editor, tmp_path):
        (tmp_path / "a").write_text("file")
        editor.write(str(tmp_path / "a" / "b.txt"), "x")
        editor.write(str(tmp_path / "ok.txt"), "y")
        with pytest.raises(CommitFailedError) as exc_info:
            await editor.commit_async()
        assert exc_info.value.report.written == [str(tmp_path / "ok.txt")]

    @pytest.mark.asyncio
    async def test_commit_async_classifies_before_commit(self, editor, tmp_path):
        target = tmp_path / "e.txt"
        editor.store.add(FileRecord(str(target), state=FileState.MODIFIED))
        report = await editor.commit_async()
        assert report.written == [str(target)]
        assert report.deleted == []

    @pytest.mark.asyncio
    async def test_commit_file_async(self, editor, tmp_path):
        target = tmp_path / "a.txt"
        editor.write(str(target), "x")
        assert await editor.commit_file_async(editor.store.get(str(target))) is True
        assert target.read_text() == "x"
