from __future__ import annotations

import pytest

from pong.settings import Settings, load_settings


def test_defaults_match_the_game_page() -> None:
    settings = Settings().validate()

    assert settings.tick_interval == pytest.approx(0.1)
    assert (settings.left_up_key, settings.left_down_key) == ("w", "s")
    assert (settings.right_up_key, settings.right_down_key) == ("o", "l")
    assert settings.click_policy == "ignore"
    assert settings.start_paused is True


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PONG_TICK_MS", "50")
    monkeypatch.setenv("PONG_LEFT_UP_KEY", "q")
    monkeypatch.setenv("PONG_CLICK_POLICY", "Steer")
    monkeypatch.setenv("PONG_HANDICAP", "off")
    monkeypatch.setenv("PONG_SEED", "7")
    monkeypatch.setenv("REDIS_URL", "redis://example:6379/1")

    settings = load_settings()

    assert settings.tick_ms == 50
    assert settings.left_up_key == "q"
    assert settings.click_policy == "steer"
    assert settings.handicap is False
    assert settings.seed == 7
    assert settings.redis_url == "redis://example:6379/1"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PONG_TICK_MS", "fast"),
        ("PONG_TICK_MS", "0"),
        ("PONG_HANDICAP", "maybe"),
        ("PONG_CLICK_POLICY", "restart"),
        ("PONG_RIGHT_UP_KEY", "w"),
        ("PONG_PADDLE_HEIGHT", "0.9"),
    ],
)
def test_invalid_env_is_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        load_settings()
