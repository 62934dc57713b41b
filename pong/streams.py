from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import cast

import redis

from pong.core.events import GameEvent

logger = logging.getLogger(__name__)


class EventOutbox:
    """Append-only feed of game events in a Redis stream.

    Best-effort: a Redis failure is logged and never reaches the game loop.
    """

    def __init__(self, *, r: redis.Redis, stream_key: str = "pong:events", maxlen: int = 1000):
        self.r = r
        self.stream_key = stream_key
        self.maxlen = maxlen

    def publish(self, events: Sequence[GameEvent]) -> list[str]:
        ids: list[str] = []
        for event in events:
            try:
                stream_id = self.r.xadd(self.stream_key, event.as_fields(), maxlen=self.maxlen, approximate=True)
            except redis.RedisError:
                logger.exception("Failed to publish %s to %s", event.type, self.stream_key)
                continue
            ids.append(cast(str, stream_id))
        return ids

    def recent(self, *, count: int = 20) -> list[dict[str, object]]:
        """Newest-last list of the last `count` events."""

        entries = self.r.xrevrange(self.stream_key, count=count)
        return [{"id": mid, "fields": fields} for mid, fields in reversed(entries)]

    def close(self) -> None:
        try:
            self.r.close()
        except redis.RedisError:
            logger.debug("Ignoring error while closing redis client", exc_info=True)
