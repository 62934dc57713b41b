from __future__ import annotations

import asyncio

import pytest

from pong.api.models import Ball, Direction, Transition
from pong.core.changes import Region
from pong.engine import GameEngine
from pong.settings import Settings


@pytest.mark.asyncio
async def test_double_pause_toggle_restores_pause_flag(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(paused=False))

    first = await engine.handle_keypress("p", Transition.release)
    assert first.after.paused is True
    assert first.regions == {Region.scoreboard}
    assert [e.type for e in first.events] == ["PAUSED"]

    second = await engine.handle_keypress("p")
    assert second.after.paused is False
    assert [e.type for e in second.events] == ["RESUMED"]


@pytest.mark.asyncio
async def test_pause_press_does_not_toggle(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(paused=False))

    update = await engine.handle_keypress("p", Transition.press)

    assert update.after.paused is False
    assert not update.changed


@pytest.mark.asyncio
async def test_paused_ticks_are_no_ops(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(paused=True))
    await engine.handle_keypress("w", Transition.press)
    before = await engine.snapshot()

    for _ in range(20):
        update = await engine.advance(0.1)
        assert not update.changed

    assert (await engine.snapshot()) == before


@pytest.mark.asyncio
async def test_keypress_only_flags_that_paddle(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(paused=True))

    update = await engine.handle_keypress("l", Transition.press)

    assert update.regions == {Region.bat_right}
    assert update.after.right.direction == Direction.down
    assert update.after.last_key == "l"


@pytest.mark.asyncio
async def test_goal_reports_event_and_regions(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(ball=Ball(x=0.98, y=0.5, vx=0.5, vy=0.0), right_pos=0.0))

    update = await engine.advance(0.1)

    assert update.regions == {Region.scoreboard, Region.ball}
    assert update.after.score_left == 1
    [event] = update.events
    assert event.type == "GOAL_SCORED"
    assert event.payload["scored_by"] == "left"


@pytest.mark.asyncio
async def test_updates_are_private_copies(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(paused=False))

    update = await engine.advance(0.1)
    update.after.left.score = 99

    assert (await engine.snapshot()).left.score == 0


@pytest.mark.asyncio
async def test_concurrent_inputs_and_ticks_never_tear(settings, make_state) -> None:
    engine = GameEngine(settings=settings, state=make_state(paused=False))

    async def left_player() -> None:
        for i in range(50):
            await engine.handle_keypress("w" if i % 2 else "s", Transition.press)
            await asyncio.sleep(0)

    async def right_player() -> None:
        for i in range(50):
            await engine.handle_keypress("o" if i % 2 else "l", Transition.press)
            await asyncio.sleep(0)

    async def clock() -> None:
        for _ in range(50):
            update = await engine.advance(0.1)
            for paddle in (update.after.left, update.after.right):
                assert 0.0 <= paddle.position <= 1.0 - paddle.height
            await asyncio.sleep(0)

    await asyncio.gather(left_player(), right_player(), clock())

    final = await engine.snapshot()
    assert final.left.direction == Direction.up
    assert final.right.direction == Direction.up


def test_fresh_engine_uses_configured_seed() -> None:
    a = GameEngine(settings=Settings(seed=5)).peek()
    b = GameEngine(settings=Settings(seed=5)).peek()

    assert a.seed == b.seed == 5
    assert (a.ball.vx, a.ball.vy) == (b.ball.vx, b.ball.vy)
    assert a.paused is True
