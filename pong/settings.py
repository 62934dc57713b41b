from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

ClickPolicy = Literal["ignore", "steer"]

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def project_root() -> Path:
    # pong/settings.py -> pong/ -> project root
    return Path(__file__).resolve().parents[1]


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().casefold()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration, read from the environment once at startup."""

    tick_ms: int = 100

    left_up_key: str = "w"
    left_down_key: str = "s"
    right_up_key: str = "o"
    right_down_key: str = "l"
    pause_key: str = "p"

    paddle_height: float = 0.2
    min_paddle_height: float = 0.08
    max_paddle_height: float = 0.5
    paddle_speed: float = 0.9
    paddle_inset: float = 0.02
    ball_speed: float = 0.45
    ball_radius: float = 0.01
    # Max vertical speed added when the ball hits a paddle edge.
    spin: float = 0.35

    handicap: bool = True
    click_policy: ClickPolicy = "ignore"
    start_paused: bool = True
    seed: int | None = None

    sse_keepalive_s: float = 15.0
    queue_size: int = 256

    redis_url: str | None = None
    events_stream_key: str = "pong:events"
    events_stream_maxlen: int = 1000
    # Outbox writes happen inside a tick; a hung server must not stall it.
    redis_timeout_s: float = 0.25

    log_level: str = "INFO"

    @property
    def tick_interval(self) -> float:
        return self.tick_ms / 1000.0

    def validate(self) -> "Settings":
        if self.tick_ms <= 0:
            raise ValueError("PONG_TICK_MS must be positive")
        if not 0 < self.min_paddle_height <= self.paddle_height <= self.max_paddle_height < 1:
            raise ValueError("Paddle heights must satisfy 0 < min <= initial <= max < 1")
        if self.paddle_speed < 0 or self.ball_speed <= 0:
            raise ValueError("Speeds must be positive")
        if not 0 <= self.paddle_inset < 0.5:
            raise ValueError("PONG_PADDLE_INSET must be within [0, 0.5)")
        if self.click_policy not in ("ignore", "steer"):
            raise ValueError(f"Unknown click policy: {self.click_policy}")
        if self.redis_timeout_s <= 0:
            raise ValueError("PONG_REDIS_TIMEOUT_S must be positive")
        if self.queue_size < 1:
            raise ValueError("PONG_QUEUE_SIZE must be at least 1")
        keys = [self.left_up_key, self.left_down_key, self.right_up_key, self.right_down_key, self.pause_key]
        if any(not k for k in keys):
            raise ValueError("Key bindings must not be empty")
        if len(set(keys)) != len(keys):
            raise ValueError("Key bindings must be distinct")
        return self


def load_settings() -> Settings:
    """Build Settings from `PONG_*` environment variables.

    Set PONG_LOAD_DOTENV=1 to read a `.env` file from the project root first.
    """

    if _env_bool("PONG_LOAD_DOTENV", False):
        env_path = project_root() / ".env"
        if env_path.exists():
            from dotenv import load_dotenv

            load_dotenv(dotenv_path=env_path, override=False)

    defaults = Settings()
    policy = _env_str("PONG_CLICK_POLICY", defaults.click_policy).strip().casefold()

    return Settings(
        tick_ms=_env_int("PONG_TICK_MS", defaults.tick_ms),  # type: ignore[arg-type]
        left_up_key=_env_str("PONG_LEFT_UP_KEY", defaults.left_up_key),
        left_down_key=_env_str("PONG_LEFT_DOWN_KEY", defaults.left_down_key),
        right_up_key=_env_str("PONG_RIGHT_UP_KEY", defaults.right_up_key),
        right_down_key=_env_str("PONG_RIGHT_DOWN_KEY", defaults.right_down_key),
        pause_key=_env_str("PONG_PAUSE_KEY", defaults.pause_key),
        paddle_height=_env_float("PONG_PADDLE_HEIGHT", defaults.paddle_height),
        paddle_speed=_env_float("PONG_PADDLE_SPEED", defaults.paddle_speed),
        paddle_inset=_env_float("PONG_PADDLE_INSET", defaults.paddle_inset),
        ball_speed=_env_float("PONG_BALL_SPEED", defaults.ball_speed),
        handicap=_env_bool("PONG_HANDICAP", defaults.handicap),
        click_policy=policy,  # type: ignore[arg-type]
        start_paused=_env_bool("PONG_START_PAUSED", defaults.start_paused),
        seed=_env_int("PONG_SEED", None),
        sse_keepalive_s=_env_float("PONG_SSE_KEEPALIVE_S", defaults.sse_keepalive_s),
        queue_size=_env_int("PONG_QUEUE_SIZE", defaults.queue_size),  # type: ignore[arg-type]
        redis_url=os.environ.get("REDIS_URL") or None,
        redis_timeout_s=_env_float("PONG_REDIS_TIMEOUT_S", defaults.redis_timeout_s),
        log_level=_env_str("PONG_LOG_LEVEL", defaults.log_level).upper(),
    ).validate()


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS


def reset_settings_for_tests() -> None:
    global _SETTINGS
    _SETTINGS = None
