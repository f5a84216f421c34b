"""Holder for the current authoritative snapshot."""
import threading

from .snapshot import Snapshot


class SnapshotStore:
    """
    Single-writer, many-reader holder of the latest published Snapshot.

    Readers get whatever snapshot was current when they asked; publishing swaps
    the reference, so a reader holding an older snapshot is never affected.
    Concurrent publishers are tolerated: the last publish wins.
    """

    def __init__(self, initial: Snapshot = None):
        self._current = initial if initial is not None else Snapshot.empty()
        self._lock = threading.Lock()
        self.version = 0

    def current(self) -> Snapshot:
        return self._current

    def publish(self, snapshot: Snapshot) -> int:
        """Make ``snapshot`` current and return the new version number."""
        if not isinstance(snapshot, Snapshot):
            raise TypeError(f"expected Snapshot, got {type(snapshot).__name__}")
        with self._lock:
            self._current = snapshot
            self.version += 1
            return self.version

    @property
    def built_at(self) -> float:
        return self._current.built_at
