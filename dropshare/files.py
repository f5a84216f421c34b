"""Filesystem mutations on the watched directory (flat: one path component only)."""
import os
import pathlib
import stat


class InvalidEntryName(ValueError):
    """The name is not a single, plain path component."""


def resolve_entry(root: pathlib.Path, name: str) -> pathlib.Path:
    """
    Map an entry name to its path under ``root``. Names containing a path
    separator, NUL, or equal to "." / ".." are rejected.
    """
    if not name or name in (".", ".."):
        raise InvalidEntryName(f"invalid entry name: {name!r}")
    if "/" in name or "\\" in name or "\x00" in name:
        raise InvalidEntryName(f"invalid entry name: {name!r}")
    return pathlib.Path(root) / name


def upload_name(filename: str) -> str:
    """Base name of a client-supplied upload filename (browsers may send full paths)."""
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def remove_entry(path: pathlib.Path) -> str:
    """
    Delete a file, symlink or empty directory. Returns "f" or "d" for what was
    removed; raises OSError on failure.
    """
    st = os.lstat(path)
    if stat.S_ISDIR(st.st_mode):
        os.rmdir(path)
        return "d"
    os.unlink(path)
    return "f"


def make_folder(path: pathlib.Path) -> None:
    os.mkdir(path)
