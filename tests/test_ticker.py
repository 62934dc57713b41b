from __future__ import annotations

import asyncio

import pytest

from pong.ticker import Ticker


@pytest.mark.asyncio
async def test_failing_tick_does_not_stop_the_clock() -> None:
    calls: list[float] = []

    async def _step(dt: float) -> None:
        calls.append(dt)
        if len(calls) == 1:
            raise RuntimeError("boom")

    ticker = Ticker(_step, interval=0.01)
    ticker.start()
    await asyncio.sleep(0.08)
    await ticker.stop()

    assert ticker.failures == 1
    assert len(calls) >= 3
    assert all(dt == 0.01 for dt in calls)
    assert not ticker.running


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_start_is_single() -> None:
    async def _step(dt: float) -> None:
        return None

    ticker = Ticker(_step, interval=0.01)
    await ticker.stop()

    ticker.start()
    first = ticker._task
    ticker.start()
    assert ticker._task is first

    await ticker.stop()
    await ticker.stop()
    assert not ticker.running


def test_interval_must_be_positive() -> None:
    async def _step(dt: float) -> None:
        return None

    with pytest.raises(ValueError):
        Ticker(_step, interval=0)
