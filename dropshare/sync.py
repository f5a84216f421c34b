# python
"""
dropshare/sync.py
SyncService: owns the snapshot store, subscriber registry, debouncer and watcher.

Flow: filesystem change -> watcher -> debouncer -> build -> store -> broadcast.
Mutations (upload, delete, create folder) call request_resync(), which enters
the same debouncer, so a mutation and the OS event it causes collapse into one
rebuild.
"""
import asyncio
import logging
import pathlib
from typing import Any, Dict, Optional

from .broadcaster import Broadcaster, Subscriber
from .debounce import Debouncer
from .snapshot import Snapshot, build_snapshot
from .store import SnapshotStore
from .watcher import DirectoryWatcher

logger = logging.getLogger(__name__)


class SyncService:
    def __init__(
        self,
        files_dir: pathlib.Path,
        read_interval: float = 0.2,
        max_wait: Optional[float] = None,
        send_timeout: Optional[float] = 10.0,
        watch_check_interval: float = 1.0,
        watch_backoff_initial: float = 0.5,
        watch_backoff_max: float = 30.0,
        watch: bool = True,
    ):
        self.files_dir = pathlib.Path(files_dir)
        self.store = SnapshotStore()
        self.broadcaster = Broadcaster(self.store, send_timeout=send_timeout)
        self.debouncer = Debouncer(read_interval, self._rebuild, max_wait=max_wait)
        self.watcher: Optional[DirectoryWatcher] = None
        if watch:
            self.watcher = DirectoryWatcher(self.files_dir, self.debouncer.notify_threadsafe)
        self.watch_check_interval = watch_check_interval
        self.watch_backoff_initial = watch_backoff_initial
        self.watch_backoff_max = watch_backoff_max
        self._supervisor: Optional[asyncio.Task] = None
        self._rebuild_lock = asyncio.Lock()
        self.resync_count = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any], watch: bool = True) -> "SyncService":
        sync = config["sync"]
        max_wait_ms = sync.get("max_wait_ms")
        return cls(
            pathlib.Path(config["paths"]["files_dir"]),
            read_interval=sync["read_interval_ms"] / 1000.0,
            max_wait=max_wait_ms / 1000.0 if max_wait_ms is not None else None,
            send_timeout=sync.get("send_timeout"),
            watch_check_interval=sync.get("watch_check_interval", 1.0),
            watch_backoff_initial=sync.get("watch_backoff_initial", 0.5),
            watch_backoff_max=sync.get("watch_backoff_max", 30.0),
            watch=watch,
        )

    async def start(self) -> None:
        """
        Start the pipeline. Raises WatchError if the directory cannot be watched.
        """
        self.debouncer.start()
        if self.watcher is not None:
            try:
                await asyncio.to_thread(self.watcher.start)
            except Exception:
                await self.debouncer.stop()
                raise
        await self._rebuild()
        if self.watcher is not None:
            self._supervisor = asyncio.create_task(
                self.watcher.supervise(
                    self.watch_check_interval,
                    self.watch_backoff_initial,
                    self.watch_backoff_max,
                )
            )
        logger.info("Syncing %s (%d entries)", self.files_dir, len(self.store.current()))

    async def stop(self) -> None:
        supervisor, self._supervisor = self._supervisor, None
        if supervisor is not None:
            supervisor.cancel()
            try:
                await supervisor
            except asyncio.CancelledError:
                pass
        if self.watcher is not None:
            await asyncio.to_thread(self.watcher.stop)
        await self.debouncer.stop()
        await self.broadcaster.cancel_pending()

    async def _rebuild(self) -> None:
        # the startup build runs outside the debouncer task; never let the two overlap
        async with self._rebuild_lock:
            try:
                snapshot = await asyncio.to_thread(build_snapshot, self.files_dir)
            except OSError as exc:
                # the directory itself is gone or unreadable: clients should see it empty
                logger.error("Cannot list %s: %s", self.files_dir, exc)
                snapshot = Snapshot.empty()
            self.store.publish(snapshot)
            self.resync_count += 1
        # not awaited: sends run in per-subscriber sender tasks
        scheduled = self.broadcaster.broadcast_current()
        logger.debug(
            "Rebuilt snapshot #%d: %d entries, scheduled for %d subscribers",
            self.store.version,
            len(snapshot),
            scheduled,
        )

    def request_resync(self) -> None:
        """Schedule a rebuild and broadcast through the debounce path."""
        self.debouncer.notify()

    def current(self) -> Snapshot:
        return self.store.current()

    def register(self, subscriber: Subscriber) -> None:
        self.broadcaster.register(subscriber)

    def unregister(self, subscriber: Subscriber) -> None:
        self.broadcaster.unregister(subscriber)

    async def push_to(self, subscriber: Subscriber) -> bool:
        return await self.broadcaster.push_to(subscriber)

    def broadcast_current(self) -> int:
        return self.broadcaster.broadcast_current()
