from __future__ import annotations

import logging

from jinja2 import TemplateError

from pong.api.models import GameState, Transition
from pong.broadcast import Subscription, ViewerHub
from pong.core.changes import ALL_REGIONS, Region
from pong.core.events import GameEvent
from pong.engine import GameEngine, StateUpdate
from pong.infra.redis_client import create_redis
from pong.rendering import FragmentRenderer
from pong.settings import Settings
from pong.streams import EventOutbox
from pong.ticker import Ticker

logger = logging.getLogger(__name__)


class GameRuntime:
    """Wires engine -> change detector -> renderer -> viewer hub.

    `publish` is synchronous: it runs in the same event-loop step as the
    mutation that produced the update, so fragments are queued in mutation
    order and no network I/O happens while the engine is locked.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        engine: GameEngine | None = None,
        hub: ViewerHub | None = None,
        renderer: FragmentRenderer | None = None,
        outbox: EventOutbox | None = None,
    ):
        self.settings = settings
        self.engine = engine or GameEngine(settings=settings)
        self.hub = hub or ViewerHub(queue_size=settings.queue_size)
        self.renderer = renderer or FragmentRenderer(pause_key=settings.pause_key)
        self.outbox = outbox
        self.ticker = Ticker(self.tick, interval=settings.tick_interval)
        self._latest: GameState = self.engine.peek()

    @property
    def latest(self) -> GameState:
        """Copy of the most recently published state."""

        return self._latest.model_copy(deep=True)

    async def start(self) -> None:
        self.ticker.start()

    async def stop(self) -> None:
        await self.ticker.stop()
        self.hub.close_all()
        if self.outbox is not None:
            self.outbox.close()

    async def tick(self, dt: float) -> StateUpdate:
        update = await self.engine.advance(dt)
        self.publish(update)
        return update

    async def keypress(self, raw_key: str | None, transition: Transition | None = None) -> StateUpdate:
        update = await self.engine.handle_keypress(raw_key, transition)
        self.publish(update)
        return update

    async def click(self, x: float, y: float) -> StateUpdate:
        update = await self.engine.handle_click(x, y)
        self.publish(update)
        return update

    def publish(self, update: StateUpdate) -> None:
        self._latest = update.after
        self._record(update.events)
        if update.changed:
            self._push(update.regions)

    def connect(self) -> Subscription:
        """Register a viewer and queue a full snapshot for it."""

        sub = self.hub.subscribe()
        try:
            events = self.renderer.render_events(ALL_REGIONS, self._latest, viewers=self.hub.viewer_count)
        except TemplateError:
            logger.exception("Failed to render initial snapshot")
            self.hub.unsubscribe(sub)
            raise
        if not self.hub.send(sub, events):
            # Snapshot alone overflowed its queue; it never really joined.
            return sub
        # Everyone else sees the new viewer count.
        self._push(frozenset({Region.scoreboard}), exclude=sub)
        self._record([GameEvent.now(type="VIEWER_JOINED", tick=self._latest.tick, payload={"viewers": self.hub.viewer_count})])
        return sub

    def disconnect(self, sub: Subscription) -> None:
        # False when the hub already dropped it; that departure was announced then.
        if self.hub.unsubscribe(sub):
            self._viewer_left(sub)

    def render_page(self) -> str:
        return self.renderer.render_page(self._latest, viewers=self.hub.viewer_count)

    def _push(self, regions: frozenset[Region], *, exclude: Subscription | None = None) -> None:
        if self.hub.viewer_count == 0:
            return
        try:
            events = self.renderer.render_events(regions, self._latest, viewers=self.hub.viewer_count)
        except TemplateError:
            logger.exception("Failed to render %s", sorted(r.value for r in regions))
            return
        if exclude is None:
            dropped = self.hub.broadcast(events)
        else:
            dropped = [
                sub for sub in self.hub.subscriptions() if sub is not exclude and not self.hub.send(sub, events)
            ]
        for sub in dropped:
            self._viewer_left(sub)

    def _viewer_left(self, sub: Subscription) -> None:
        """Tell the remaining viewers, and the outbox, that `sub` is gone."""

        self._push(frozenset({Region.scoreboard}))
        self._record(
            [
                GameEvent.now(
                    type="VIEWER_LEFT",
                    tick=self._latest.tick,
                    payload={"viewer": sub.id, "viewers": self.hub.viewer_count},
                )
            ]
        )

    def _record(self, events: list[GameEvent]) -> None:
        if self.outbox is None or not events:
            return
        self.outbox.publish(events)


def build_runtime(settings: Settings) -> GameRuntime:
    r = create_redis(settings)
    outbox = None
    if r is not None:
        outbox = EventOutbox(r=r, stream_key=settings.events_stream_key, maxlen=settings.events_stream_maxlen)
    return GameRuntime(settings=settings, outbox=outbox)
