from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PushEvent:
    """A named, data-bearing push event (one rendered fragment)."""

    event: str
    data: str

    def encode_sse(self) -> str:
        # Multi-line payloads need one `data:` field per line.
        lines = self.data.splitlines() or [""]
        body = "".join(f"data: {line}\n" for line in lines)
        return f"event: {self.event}\n{body}\n"

    def as_json(self) -> dict[str, str]:
        return {"event": self.event, "data": self.data}


class Subscription:
    """One viewer's outbound queue.

    The hub only ever does non-blocking puts; the viewer's response task
    drains the queue at its own pace.
    """

    def __init__(self, sub_id: int, *, maxsize: int):
        self.id = sub_id
        self._queue: asyncio.Queue[PushEvent | None] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, event: PushEvent) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake a waiting reader; if the queue is full it will see `closed` after draining.
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    async def get(self, timeout: float | None = None) -> PushEvent | None:
        """Next event, or None on timeout or close."""

        if self.closed and self._queue.empty():
            return None
        try:
            if timeout is None:
                return await self._queue.get()
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    async def events(self) -> AsyncIterator[PushEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class ViewerHub:
    """In-process registry of open push connections.

    Contract:
      - `subscribe()` registers a viewer and returns its Subscription.
      - `broadcast(events)` queues events on every open subscription and
        returns the subscriptions it had to drop.
      - `unsubscribe(sub)` removes it; safe to call more than once.

    A viewer that cannot keep up (full queue) is dropped; nothing raises
    back into the caller, which owns announcing the departure.
    """

    def __init__(self, *, queue_size: int = 256) -> None:
        self._subs: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._queue_size = queue_size

    @property
    def viewer_count(self) -> int:
        return len(self._subs)

    def subscriptions(self) -> list[Subscription]:
        return list(self._subs.values())

    def subscribe(self) -> Subscription:
        sub = Subscription(next(self._ids), maxsize=self._queue_size)
        self._subs[sub.id] = sub
        logger.info("Viewer %d connected (%d open)", sub.id, len(self._subs))
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        sub.close()
        removed = self._subs.pop(sub.id, None) is not None
        if removed:
            logger.info("Viewer %d disconnected (%d open)", sub.id, len(self._subs))
        return removed

    def send(self, sub: Subscription, events: Sequence[PushEvent]) -> bool:
        """Queue events for a single viewer; drops it on failure."""

        for event in events:
            if not sub.offer(event):
                logger.warning("Dropping viewer %d: outbound queue full or closed", sub.id)
                self.unsubscribe(sub)
                return False
        return True

    def broadcast(self, events: Sequence[PushEvent]) -> list[Subscription]:
        """Queue events on every open subscription. Returns the ones dropped."""

        if not events:
            return []
        return [sub for sub in list(self._subs.values()) if not self.send(sub, events)]

    def close_all(self) -> None:
        for sub in list(self._subs.values()):
            self.unsubscribe(sub)
