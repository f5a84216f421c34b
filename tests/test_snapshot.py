# python
"""
tests/test_snapshot.py
Snapshot building: one level, sorted, files sized, directories at 0, and
entries that cannot be stat'ed left out.
"""
import os

import pytest

from dropshare.snapshot import Entry, FileKind, Snapshot, build_snapshot


def test_lists_files_and_directories(tmp_path):
    (tmp_path / "a.txt").write_bytes(b"x" * 10)
    (tmp_path / "sub").mkdir()

    snap = build_snapshot(tmp_path)

    assert snap.to_wire() == [
        {"name": "a.txt", "type": "f", "size": 10},
        {"name": "sub", "type": "d", "size": 0},
    ]
    assert snap.built_at > 0


def test_entries_sorted_by_name(tmp_path):
    for name in ("zeta", "Alpha", "beta", "_x"):
        (tmp_path / name).write_text("1")

    assert build_snapshot(tmp_path).names() == sorted(["zeta", "Alpha", "beta", "_x"])


def test_does_not_recurse(tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "inner.txt").write_text("hidden")

    snap = build_snapshot(tmp_path)

    assert snap.names() == ["sub"]
    assert "inner.txt" not in snap


def test_empty_directory(tmp_path):
    snap = build_snapshot(tmp_path)
    assert len(snap) == 0
    assert snap.to_wire() == []


def test_dangling_symlink_is_skipped(tmp_path):
    (tmp_path / "real.txt").write_text("abc")
    os.symlink(tmp_path / "missing", tmp_path / "broken")

    snap = build_snapshot(tmp_path)

    assert snap.names() == ["real.txt"]


def test_symlink_to_file_is_listed_as_file(tmp_path):
    target = tmp_path / "target.bin"
    target.write_bytes(b"12345")
    os.symlink(target, tmp_path / "link.bin")

    entry = build_snapshot(tmp_path).get("link.bin")

    assert entry == Entry("link.bin", FileKind.FILE, 5)


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs mkfifo")
def test_special_files_are_left_out(tmp_path):
    os.mkfifo(tmp_path / "pipe")
    (tmp_path / "plain").write_text("ok")

    assert build_snapshot(tmp_path).names() == ["plain"]


def test_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        build_snapshot(tmp_path / "nope")


def test_lookup_helpers():
    snap = Snapshot((Entry("b", FileKind.DIRECTORY), Entry("a", FileKind.FILE, 3)), 1.0)

    assert "a" in snap
    assert "c" not in snap
    assert snap.get("a").size == 3
    assert snap.get("c") is None
    assert [e.name for e in snap] == ["b", "a"]
    assert Snapshot.empty().built_at == 0.0
