# python
"""
tests/test_files.py
Entry-name validation and the filesystem mutations used by delete/upload/mkdir.
"""
import pytest

from dropshare.files import (
    InvalidEntryName,
    make_folder,
    remove_entry,
    resolve_entry,
    upload_name,
)


@pytest.mark.parametrize("name", ["", ".", "..", "a/b", "../etc", "a\\b", "nul\x00"])
def test_resolve_entry_rejects_non_plain_names(tmp_path, name):
    with pytest.raises(InvalidEntryName):
        resolve_entry(tmp_path, name)


def test_resolve_entry_plain_name(tmp_path):
    assert resolve_entry(tmp_path, "report 1.pdf") == tmp_path / "report 1.pdf"


def test_upload_name_strips_client_paths():
    assert upload_name("C:\\Users\\me\\photo.jpg") == "photo.jpg"
    assert upload_name("dir/sub/file.txt") == "file.txt"
    assert upload_name("plain.txt") == "plain.txt"


def test_remove_entry_file_and_empty_dir(tmp_path):
    f = tmp_path / "f.txt"
    f.write_text("x")
    d = tmp_path / "d"
    d.mkdir()

    assert remove_entry(f) == "f"
    assert remove_entry(d) == "d"
    assert list(tmp_path.iterdir()) == []


def test_remove_entry_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        remove_entry(tmp_path / "missing")

    d = tmp_path / "full"
    d.mkdir()
    (d / "child").write_text("x")
    with pytest.raises(OSError):
        remove_entry(d)


def test_make_folder_existing_raises(tmp_path):
    make_folder(tmp_path / "new")
    assert (tmp_path / "new").is_dir()
    with pytest.raises(FileExistsError):
        make_folder(tmp_path / "new")
