"""Directory snapshots: a flat, immutable listing of the watched directory."""
from __future__ import annotations

import enum
import logging
import os
import stat
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class FileKind(str, enum.Enum):
    FILE = "f"
    DIRECTORY = "d"


@dataclass(frozen=True)
class Entry:
    name: str
    kind: FileKind
    size: int = 0

    def to_wire(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.kind.value, "size": self.size}


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time listing of one directory with fast lookups by name.

    Snapshots are never mutated after construction; a rebuild produces a new one.
    """

    entries: Tuple[Entry, ...] = ()
    built_at: float = 0.0
    _index: Dict[str, Entry] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(self, "_index", {e.name: e for e in self.entries})

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls((), 0.0)

    def get(self, name: str) -> Optional[Entry]:
        return self._index.get(name)

    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def to_wire(self) -> List[Dict[str, Any]]:
        return [e.to_wire() for e in self.entries]

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self._index


def _entry_for(dirent: os.DirEntry) -> Optional[Entry]:
    # follow symlinks: a link to a file is listed as a file, a dangling link raises
    st = dirent.stat()
    if stat.S_ISREG(st.st_mode):
        return Entry(dirent.name, FileKind.FILE, st.st_size)
    if stat.S_ISDIR(st.st_mode):
        return Entry(dirent.name, FileKind.DIRECTORY, 0)
    return None


def build_snapshot(path: os.PathLike | str) -> Snapshot:
    """
    List ``path`` (one level, no recursion) and stat every entry.

    Entries that cannot be stat'ed are logged and skipped; entries that are
    neither regular files nor directories are left out. Entries are sorted by
    name so clients see a stable order across rebuilds.

    Raises OSError if the directory itself cannot be listed.
    """
    entries: List[Entry] = []
    with os.scandir(path) as it:
        for dirent in it:
            try:
                entry = _entry_for(dirent)
            except OSError as exc:
                logger.warning("Skipping %s: %s", dirent.name, exc)
                continue
            if entry is None:
                logger.debug("Skipping %s: not a file or directory", dirent.name)
                continue
            entries.append(entry)
    entries.sort(key=lambda e: e.name)
    return Snapshot(tuple(entries), time.time())
