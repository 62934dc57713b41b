from __future__ import annotations

from pathlib import Path

import pytest

from pong.api.models import Ball, Direction
from pong.core.changes import ALL_REGIONS, Region
from pong.rendering import FragmentRenderer, RendererError


@pytest.fixture(scope="module")
def renderer() -> FragmentRenderer:
    return FragmentRenderer()


def test_ball_fragment_uses_percent_geometry(renderer: FragmentRenderer, make_state) -> None:
    state = make_state(ball=Ball(x=0.25, y=0.755))

    html = renderer.render(Region.ball, state, viewers=1)

    assert html == '<div class="ball" style="left: 25.00%; top: 75.50%;"></div>'


def test_bat_fragments_carry_their_own_id(renderer: FragmentRenderer, make_state) -> None:
    state = make_state(left_pos=0.1, right_pos=0.7)
    state.right.direction = Direction.down

    left = renderer.render(Region.bat_left, state, viewers=1)
    right = renderer.render(Region.bat_right, state, viewers=1)

    assert 'id="bat_left"' in left and "top: 10.00%" in left and "height: 20.00%" in left
    assert 'id="bat_right"' in right and "top: 70.00%" in right and "bat-down" in right


def test_scoreboard_shows_scores_banner_and_viewers(renderer: FragmentRenderer, make_state) -> None:
    state = make_state(paused=True)
    state.left.score = 3
    state.right.score = 11

    html = renderer.render(Region.scoreboard, state, viewers=2)

    assert ">3<" in html and ">11<" in html
    assert "Paused" in html
    assert "2 watching" in html

    state.paused = False
    assert "Paused" not in renderer.render(Region.scoreboard, state, viewers=2)


def test_rendering_is_deterministic(renderer: FragmentRenderer, make_state) -> None:
    state = make_state()

    first = renderer.render_events(ALL_REGIONS, state, viewers=1)
    second = renderer.render_events(ALL_REGIONS, state.model_copy(deep=True), viewers=1)

    assert first == second
    assert [e.event for e in first] == ["scoreboard", "bat_left", "bat_right", "ball"]


def test_missing_template_dir_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(RendererError):
        FragmentRenderer(template_dir=tmp_path / "nope")

    with pytest.raises(RendererError):
        FragmentRenderer(template_dir=tmp_path)


def test_paused_banner_names_the_configured_pause_key(make_state) -> None:
    renderer = FragmentRenderer(pause_key="Escape")

    html = renderer.render(Region.scoreboard, make_state(paused=True), viewers=1)

    assert "<kbd>Escape</kbd>" in html
    assert "<kbd>p</kbd>" not in html
