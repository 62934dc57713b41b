from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal

from pong.api.models import Direction, GameState, Side, Transition
from pong.fsm import PauseFSM
from pong.settings import ClickPolicy

logger = logging.getLogger(__name__)

ActionKind = Literal["move", "pause"]


@dataclass(frozen=True, slots=True)
class KeyAction:
    kind: ActionKind
    side: Side | None = None
    direction: Direction | None = None


@dataclass(frozen=True, slots=True)
class KeyInput:
    raw_key: str | None
    transition: Transition


@dataclass(frozen=True, slots=True)
class PointerInput:
    x: float
    y: float


def normalize_key(raw_key: str | None) -> str | None:
    """Case-fold single characters so Shift/CapsLock don't change bindings."""

    if raw_key is None:
        return None
    # The space bar arrives as " "; keep it.
    key = raw_key.strip() or raw_key
    if not key:
        return None
    return key.casefold() if len(key) == 1 else key


class KeyMap:
    """Explicit raw key -> action table.

    Built from the paddles' configured bindings plus the pause key.
    """

    def __init__(self, table: dict[str, KeyAction]):
        self._table = dict(table)

    @classmethod
    def from_state(cls, state: GameState, *, pause_key: str = "p") -> "KeyMap":
        table: dict[str, KeyAction] = {}
        for side in (Side.left, Side.right):
            paddle = state.paddle(side)
            for key, direction in ((paddle.up_key, Direction.up), (paddle.down_key, Direction.down)):
                norm = normalize_key(key)
                if norm is None or norm in table:
                    raise ValueError(f"Ambiguous or empty key binding: {key!r}")
                table[norm] = KeyAction(kind="move", side=side, direction=direction)
        norm_pause = normalize_key(pause_key)
        if norm_pause is None or norm_pause in table:
            raise ValueError(f"Pause key collides with a paddle binding: {pause_key!r}")
        table[norm_pause] = KeyAction(kind="pause")
        return cls(table)

    def lookup(self, raw_key: str | None) -> KeyAction | None:
        key = normalize_key(raw_key)
        if key is None:
            return None
        return self._table.get(key)

    def keys(self) -> list[str]:
        return sorted(self._table)


def infer_transition(*, action: KeyAction | None, transition: Transition | None) -> Transition:
    """Pick a transition when the client didn't send one.

    The game page only reports keyup for the pause key and keydown for the
    movement keys.
    """

    if transition is not None:
        return transition
    if action is not None and action.kind == "pause":
        return Transition.release
    return Transition.press


def apply_key(*, state: GameState, fsm: PauseFSM, keymap: KeyMap, event: KeyInput) -> bool:
    """Apply a key event to the state. Returns True if pause was toggled."""

    if event.raw_key is not None:
        state.last_key = event.raw_key

    action = keymap.lookup(event.raw_key)
    if action is None:
        logger.debug("Ignoring unbound key %r", event.raw_key)
        return False

    if action.kind == "pause":
        if event.transition != Transition.release:
            return False
        fsm.toggle()
        fsm.sync_to_model()
        logger.info("Game %s", "paused" if state.paused else "resumed")
        return True

    if action.side is None or action.direction is None:
        return False
    paddle = state.paddle(action.side)
    if event.transition == Transition.press:
        paddle.direction = action.direction
    elif paddle.direction == action.direction:
        # A release of a key that was already overridden by a newer press is stale.
        paddle.direction = Direction.idle
    return False


def apply_click(*, state: GameState, fsm: PauseFSM, event: PointerInput, policy: ClickPolicy) -> bool:
    """Apply a pointer event. Returns True if pause was toggled."""

    if not (math.isfinite(event.x) and math.isfinite(event.y)):
        logger.debug("Ignoring non-finite click %r", event)
        return False
    if not (0.0 <= event.x <= 1.0 and 0.0 <= event.y <= 1.0):
        logger.debug("Ignoring out-of-field click %r", event)
        return False

    if policy == "ignore":
        return False

    if state.paused:
        fsm.resume()
        fsm.sync_to_model()
        logger.info("Game resumed by click")
        return True

    paddle = state.paddle(Side.left if event.x < 0.5 else Side.right)
    step = paddle.height / 2
    if event.y < paddle.center:
        paddle.position = max(0.0, paddle.position - step)
    else:
        paddle.position = min(1.0 - paddle.height, paddle.position + step)
    return False
