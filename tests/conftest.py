from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from pong.api.models import Ball, GameState, Paddle
from pong.engine import GameEngine
from pong.runtime import GameRuntime
from pong.settings import Settings


@pytest.fixture(scope="session", autouse=True)
def _hermetic_env() -> Generator[None, None, None]:
    """Keep the app's own startup runtime away from a developer's Redis / .env."""

    mp = pytest.MonkeyPatch()
    mp.delenv("REDIS_URL", raising=False)
    mp.delenv("PONG_LOAD_DOTENV", raising=False)

    from pong.settings import reset_settings_for_tests

    reset_settings_for_tests()
    yield
    mp.undo()
    reset_settings_for_tests()


@pytest.fixture()
def settings() -> Settings:
    # Handicap off so paddle heights stay put in scenario tests.
    return Settings(handicap=False, seed=1234)


@pytest.fixture()
def make_state() -> Callable[..., GameState]:
    def _make(
        *,
        ball: Ball | None = None,
        left_pos: float = 0.4,
        right_pos: float = 0.4,
        height: float = 0.2,
        paused: bool = False,
    ) -> GameState:
        return GameState(
            left=Paddle(up_key="w", down_key="s", position=left_pos, height=height),
            right=Paddle(up_key="o", down_key="l", position=right_pos, height=height),
            ball=ball or Ball(x=0.5, y=0.5, vx=0.3, vy=0.1),
            paused=paused,
            seed=1234,
        )

    return _make


@pytest.fixture()
def runtime(settings: Settings, make_state: Callable[..., GameState]) -> GameRuntime:
    engine = GameEngine(settings=settings, state=make_state(paused=True))
    return GameRuntime(settings=settings, engine=engine)


@pytest.fixture()
def client(runtime: GameRuntime) -> Generator[TestClient, None, None]:
    from pong.api.deps import get_runtime
    from pong.main import app

    app.dependency_overrides[get_runtime] = lambda: runtime
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
