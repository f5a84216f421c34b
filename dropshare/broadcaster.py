# python
"""
dropshare/broadcaster.py
Subscriber registry and fan-out of the current snapshot to connected clients.
"""
import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional

from .protocol import encode_update
from .snapshot import Snapshot
from .store import SnapshotStore

logger = logging.getLogger(__name__)


class Subscriber:
    """
    Outbound channel to one connected client.

    ``send`` delivers one text frame; ``close`` (optional) closes the channel.
    Sends to the same subscriber are serialized, and the snapshot is read
    inside that critical section, so a subscriber never receives an older
    snapshot after a newer one.
    """

    def __init__(
        self,
        send: Callable[[str], Awaitable[None]],
        close: Optional[Callable[[], Awaitable[object]]] = None,
        name: Optional[str] = None,
    ):
        self.id = name or uuid.uuid4().hex
        self._send = send
        self._close = close
        self._lock = asyncio.Lock()
        # set when a newer snapshot is waiting for this subscriber
        self.dirty = False
        self.delivered = 0
        self.last_built_at: Optional[float] = None

    async def deliver(self, current: Callable[[], Snapshot], timeout: Optional[float]) -> Snapshot:
        async with self._lock:
            snapshot = current()
            await asyncio.wait_for(self._send(encode_update(snapshot)), timeout)
            self.delivered += 1
            self.last_built_at = snapshot.built_at
            return snapshot

    async def close(self) -> None:
        if self._close is not None:
            await self._close()

    def __repr__(self) -> str:
        return f"Subscriber({self.id})"


class Broadcaster:
    """
    Registry of subscribers. Every push carries the full current snapshot.

    broadcast_current() never waits for delivery: each subscriber has at most
    one sender task, which keeps sending store.current() while the subscriber
    is marked dirty. A slow client therefore only delays itself, and a burst
    of rebuilds collapses into one send of the newest snapshot.

    A failing delivery (closed connection, timeout) is logged, and that
    subscriber is unregistered and closed. It never stops delivery to the
    other subscribers and never raises to the caller.
    """

    def __init__(self, store: SnapshotStore, send_timeout: Optional[float] = 10.0):
        self.store = store
        self.send_timeout = send_timeout
        self._subscribers: Dict[str, Subscriber] = {}
        self._senders: Dict[str, asyncio.Task] = {}

    def register(self, subscriber: Subscriber) -> None:
        self._subscribers[subscriber.id] = subscriber
        logger.debug("Registered %r (%d connected)", subscriber, len(self._subscribers))

    def unregister(self, subscriber: Subscriber) -> None:
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.debug("Unregistered %r (%d connected)", subscriber, len(self._subscribers))

    def subscribers(self) -> List[Subscriber]:
        return list(self._subscribers.values())

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber: object) -> bool:
        return isinstance(subscriber, Subscriber) and subscriber.id in self._subscribers

    async def _deliver(self, subscriber: Subscriber) -> bool:
        try:
            await subscriber.deliver(self.store.current, self.send_timeout)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            logger.warning("Push to %r timed out after %ss", subscriber, self.send_timeout)
            return False
        except Exception as exc:
            logger.warning("Push to %r failed: %s", subscriber, exc)
            return False
        return True

    async def _drop(self, subscriber: Subscriber) -> None:
        self.unregister(subscriber)
        try:
            await asyncio.wait_for(subscriber.close(), self.send_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Closing %r failed: %s", subscriber, exc)

    async def _drain(self, subscriber: Subscriber) -> None:
        try:
            while subscriber.dirty and subscriber in self:
                subscriber.dirty = False
                if not await self._deliver(subscriber):
                    await self._drop(subscriber)
                    return
        finally:
            if self._senders.get(subscriber.id) is asyncio.current_task():
                del self._senders[subscriber.id]

    def _schedule(self, subscriber: Subscriber) -> None:
        subscriber.dirty = True
        task = self._senders.get(subscriber.id)
        if task is None or task.done():
            self._senders[subscriber.id] = asyncio.get_running_loop().create_task(
                self._drain(subscriber)
            )

    async def push_to(self, subscriber: Subscriber) -> bool:
        """Send the current snapshot to one subscriber only and wait for it."""
        ok = await self._deliver(subscriber)
        if not ok:
            await self._drop(subscriber)
        return ok

    def broadcast_current(self) -> int:
        """
        Schedule the current snapshot for every subscriber and return how many
        were scheduled. Must be called from the event loop.
        """
        # iterate over a copy so (un)registration by sender tasks is safe
        targets = self.subscribers()
        for subscriber in targets:
            self._schedule(subscriber)
        return len(targets)

    async def flush(self) -> None:
        """Wait until every scheduled push has been delivered or dropped."""
        while self._senders:
            await asyncio.gather(*list(self._senders.values()), return_exceptions=True)

    async def cancel_pending(self) -> None:
        senders = list(self._senders.values())
        self._senders.clear()
        for task in senders:
            task.cancel()
        await asyncio.gather(*senders, return_exceptions=True)

    async def close_all(self) -> None:
        await self.cancel_pending()
        for subscriber in self.subscribers():
            self.unregister(subscriber)
            try:
                await subscriber.close()
            except Exception as exc:
                logger.debug("Closing %r failed: %s", subscriber, exc)
