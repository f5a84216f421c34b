"""
Directory watcher built on watchdog.

Every relevant event for the watched directory (or one of its direct children)
is reduced to a bare "something changed" callback; the snapshot builder always
re-lists the whole directory, so payloads are not inspected.

The watch is supervised: if the observer or its emitter dies (for example the
directory is removed and recreated), supervise() re-arms it with exponential
backoff and reports a change so that clients resync.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import (  # type: ignore
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer  # type: ignore

logger = logging.getLogger(__name__)

CHANGE_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)


class WatchError(RuntimeError):
    """The directory watch could not be established."""


class _ChangeEventHandler(FileSystemEventHandler):
    def __init__(self, on_change: Callable[[], None]):
        super().__init__()
        self.on_change = on_change

    def on_any_event(self, event: FileSystemEvent) -> None:
        # opened / closed-without-write come from plain reads (downloads)
        if event.event_type in CHANGE_EVENTS:
            self.on_change()


class DirectoryWatcher:
    """
    Non-recursive watch on one directory.

    ``on_change`` is invoked on the watchdog observer thread, so it must be
    thread-safe (Debouncer.notify_threadsafe is).
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.path = Path(path)
        self.on_change = on_change
        self.observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self.rearm_count = 0

    def start(self) -> None:
        if self._observer is not None:
            return
        if not self.path.is_dir():
            raise WatchError(f"watched directory does not exist: {self.path}")
        observer = self.observer_factory()
        try:
            observer.schedule(
                _ChangeEventHandler(self.on_change), str(self.path), recursive=False
            )
            observer.start()
        except OSError as exc:
            raise WatchError(f"cannot watch {self.path}: {exc}") from exc
        self._observer = observer
        logger.debug("Watching %s", self.path)

    def is_alive(self) -> bool:
        observer = self._observer
        if observer is None or not observer.is_alive():
            return False
        emitters = observer.emitters
        return bool(emitters) and all(e.is_alive() for e in emitters)

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=2)

    def rearm(self) -> None:
        self.stop()
        self.start()
        self.rearm_count += 1

    async def supervise(
        self,
        check_interval: float = 1.0,
        backoff_initial: float = 0.5,
        backoff_max: float = 30.0,
    ) -> None:
        """Re-establish the watch whenever it is found dead. Runs until cancelled."""
        while True:
            await asyncio.sleep(check_interval)
            if self.is_alive():
                continue
            logger.warning("Watch on %s lost; re-arming", self.path)
            delay = backoff_initial
            while True:
                try:
                    await asyncio.to_thread(self.rearm)
                    break
                except WatchError as exc:
                    logger.warning("%s; retrying in %.1fs", exc, delay)
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, backoff_max)
            logger.info("Watch on %s re-established", self.path)
            # changes made while the watch was down were never reported
            self.on_change()
