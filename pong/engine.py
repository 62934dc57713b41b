from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field

from pong.api.models import GameState, Transition
from pong.core import physics
from pong.core.changes import Region, changed_regions
from pong.core.events import GameEvent
from pong.fsm import PauseFSM
from pong.input_gateway import KeyInput, KeyMap, PointerInput, apply_click, apply_key, infer_transition
from pong.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StateUpdate:
    """Result of one serialized mutation.

    - `after`: a private copy of the state right after the mutation.
    - `regions`: UI regions whose fragments must be re-rendered.
    - `events`: notable game events for the outbox.
    """

    after: GameState
    regions: frozenset[Region]
    events: list[GameEvent] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.regions)


class GameEngine:
    """Owner of the single authoritative GameState.

    Every mutation (tick, keypress, click) runs under one asyncio.Lock and
    returns copies; callers never see the live model.
    """

    def __init__(self, *, settings: Settings, state: GameState | None = None):
        self.settings = settings
        if state is None:
            seed = settings.seed if settings.seed is not None else random.randrange(2**31)
            self._rng = random.Random(seed)
            state = physics.new_game_state(settings=settings, seed=seed, rng=self._rng)
        else:
            self._rng = random.Random(state.seed)
        self._state = state
        self._fsm = PauseFSM(state)
        self._keymap = KeyMap.from_state(state, pause_key=settings.pause_key)
        self._lock = asyncio.Lock()

    def peek(self) -> GameState:
        """Unlocked copy; only safe from code that does not await mid-mutation."""

        return self._state.model_copy(deep=True)

    async def snapshot(self) -> GameState:
        async with self._lock:
            return self._state.model_copy(deep=True)

    def _mutate(self, fn: Callable[[GameState], list[GameEvent]]) -> StateUpdate:
        # Caller holds the lock.
        before = self._state.model_copy(deep=True)
        events = fn(self._state)
        after = self._state.model_copy(deep=True)
        return StateUpdate(after=after, regions=changed_regions(before, after), events=events)

    async def advance(self, dt: float) -> StateUpdate:
        """Run one simulation step of `dt` seconds."""

        def _step(state: GameState) -> list[GameEvent]:
            result = physics.advance(state, dt=dt, settings=self.settings, rng=self._rng)
            if result.scored_by is None:
                return []
            logger.info(
                "Goal for %s: %d-%d",
                result.scored_by.value,
                state.score_left,
                state.score_right,
            )
            return [
                GameEvent.now(
                    type="GOAL_SCORED",
                    tick=state.tick,
                    payload={
                        "scored_by": result.scored_by.value,
                        "score_left": state.score_left,
                        "score_right": state.score_right,
                    },
                )
            ]

        async with self._lock:
            return self._mutate(_step)

    async def handle_keypress(self, raw_key: str | None, transition: Transition | None = None) -> StateUpdate:
        action = self._keymap.lookup(raw_key)
        event = KeyInput(raw_key=raw_key, transition=infer_transition(action=action, transition=transition))

        def _apply(state: GameState) -> list[GameEvent]:
            toggled = apply_key(state=state, fsm=self._fsm, keymap=self._keymap, event=event)
            return [self._pause_event(state)] if toggled else []

        async with self._lock:
            return self._mutate(_apply)

    async def handle_click(self, x: float, y: float) -> StateUpdate:
        event = PointerInput(x=x, y=y)

        def _apply(state: GameState) -> list[GameEvent]:
            toggled = apply_click(state=state, fsm=self._fsm, event=event, policy=self.settings.click_policy)
            return [self._pause_event(state)] if toggled else []

        async with self._lock:
            return self._mutate(_apply)

    @staticmethod
    def _pause_event(state: GameState) -> GameEvent:
        return GameEvent.now(
            type="PAUSED" if state.paused else "RESUMED",
            tick=state.tick,
            payload={"score_left": state.score_left, "score_right": state.score_right},
        )
