# python
"""
tests/test_store.py
SnapshotStore: publish swaps the current snapshot without touching old readers.
"""
import threading

import pytest

from dropshare.snapshot import Entry, FileKind, Snapshot
from dropshare.store import SnapshotStore


def _snap(*names, built_at=1.0):
    return Snapshot(tuple(Entry(n, FileKind.FILE, 1) for n in names), built_at)


def test_starts_empty():
    store = SnapshotStore()
    assert len(store.current()) == 0
    assert store.version == 0


def test_publish_replaces_current():
    store = SnapshotStore()
    first = _snap("a", built_at=1.0)
    second = _snap("a", "b", built_at=2.0)

    assert store.publish(first) == 1
    held = store.current()
    assert store.publish(second) == 2

    assert store.current() is second
    assert held is first
    assert held.names() == ["a"]
    assert store.built_at == 2.0


def test_publish_rejects_non_snapshots():
    with pytest.raises(TypeError):
        SnapshotStore().publish([{"name": "a"}])


def test_concurrent_publishers_last_wins():
    store = SnapshotStore()
    snaps = [_snap(str(i), built_at=float(i)) for i in range(50)]
    threads = [threading.Thread(target=store.publish, args=(s,)) for s in snaps]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.version == 50
    assert store.current() in snaps
