"""Fixed-step Pong simulation.

All functions mutate the `GameState` they are given; callers own locking.
Coordinates are fractions of the play field: x grows to the right, y grows
downwards, and a paddle's `position` is its top edge.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from pong.api.models import Ball, Direction, GameState, Paddle, Side
from pong.settings import Settings

# Serve angles stay within +/- 45 degrees of horizontal.
MAX_SERVE_ANGLE = math.pi / 4
HANDICAP_GROW = 1.1
HANDICAP_SHRINK = 0.9


@dataclass(frozen=True, slots=True)
class StepResult:
    """What happened during one step, beyond plain movement."""

    scored_by: Side | None = None
    returned_by: Side | None = None


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_paddle(paddle: Paddle) -> None:
    paddle.position = clamp(paddle.position, 0.0, 1.0 - paddle.height)


def serve(ball: Ball, *, rng: random.Random, speed: float) -> None:
    """Put the ball back in the center with a new random direction."""

    angle = rng.uniform(-MAX_SERVE_ANGLE, MAX_SERVE_ANGLE)
    heading = rng.choice((-1.0, 1.0))
    ball.x = 0.5
    ball.y = 0.5
    ball.vx = heading * speed * math.cos(angle)
    ball.vy = speed * math.sin(angle)


def move_paddle(paddle: Paddle, *, step: float) -> None:
    if paddle.direction == Direction.up:
        paddle.position -= step
    elif paddle.direction == Direction.down:
        paddle.position += step
    clamp_paddle(paddle)


def _resize(paddle: Paddle, factor: float, *, settings: Settings) -> None:
    center = paddle.center
    paddle.height = clamp(paddle.height * factor, settings.min_paddle_height, settings.max_paddle_height)
    paddle.position = center - paddle.height / 2
    clamp_paddle(paddle)


def _bounce_walls(ball: Ball) -> None:
    if ball.y < 0.0:
        ball.y = 0.0
        ball.vy = abs(ball.vy)
    elif ball.y > 1.0:
        ball.y = 1.0
        ball.vy = -abs(ball.vy)


def _paddle_hit(ball: Ball, paddle: Paddle, *, spin: float, max_vy: float) -> None:
    ball.vx = -ball.vx
    half = paddle.height / 2
    offset = clamp((ball.y - paddle.center) / half, -1.0, 1.0) if half > 0 else 0.0
    ball.vy = clamp(ball.vy + spin * offset, -max_vy, max_vy)


def _crossing_y(start: tuple[float, float], end: tuple[float, float], *, plane: float) -> float:
    """Vertical position at the instant the ball's path meets the paddle plane.

    `end` is the unbounced end point of the step.
    """

    (x0, y0), (x1, y1) = start, end
    t = clamp((plane - x0) / (x1 - x0), 0.0, 1.0) if x1 != x0 else 0.0
    return clamp(y0 + (y1 - y0) * t, 0.0, 1.0)


def _check_plane(
    state: GameState,
    *,
    side: Side,
    plane: float,
    y_cross: float,
    settings: Settings,
    rng: random.Random,
) -> StepResult:
    ball = state.ball
    paddle = state.paddle(side)
    if paddle.position <= y_cross <= paddle.bottom:
        ball.x = plane
        ball.y = y_cross
        _paddle_hit(ball, paddle, spin=settings.spin, max_vy=2 * settings.ball_speed)
        if settings.handicap:
            _resize(paddle, HANDICAP_SHRINK, settings=settings)
        return StepResult(returned_by=side)

    scorer = Side.right if side == Side.left else Side.left
    state.paddle(scorer).score += 1
    if settings.handicap:
        _resize(paddle, HANDICAP_GROW, settings=settings)
    serve(ball, rng=rng, speed=settings.ball_speed)
    return StepResult(scored_by=scorer)


def advance(state: GameState, *, dt: float, settings: Settings, rng: random.Random) -> StepResult:
    """Advance the running simulation by `dt` seconds.

    A paused state is left untouched.
    """

    if state.paused:
        return StepResult()

    step = settings.paddle_speed * dt
    move_paddle(state.left, step=step)
    move_paddle(state.right, step=step)

    ball = state.ball
    start = (ball.x, ball.y)
    ball.x += ball.vx * dt
    ball.y += ball.vy * dt
    end = (ball.x, ball.y)
    _bounce_walls(ball)

    result = StepResult()
    right_plane = 1.0 - settings.paddle_inset
    left_plane = settings.paddle_inset
    if ball.vx > 0 and ball.x >= right_plane:
        y_cross = _crossing_y(start, end, plane=right_plane)
        result = _check_plane(state, side=Side.right, plane=right_plane, y_cross=y_cross, settings=settings, rng=rng)
    elif ball.vx < 0 and ball.x <= left_plane:
        y_cross = _crossing_y(start, end, plane=left_plane)
        result = _check_plane(state, side=Side.left, plane=left_plane, y_cross=y_cross, settings=settings, rng=rng)

    state.tick += 1
    sanitize(state, settings=settings, rng=rng)
    return result


def sanitize(state: GameState, *, settings: Settings, rng: random.Random) -> None:
    """Repair any field that escaped its invariant instead of failing the tick."""

    for paddle in (state.left, state.right):
        if not math.isfinite(paddle.height):
            paddle.height = settings.paddle_height
        paddle.height = clamp(paddle.height, settings.min_paddle_height, settings.max_paddle_height)
        if not math.isfinite(paddle.position):
            paddle.position = 0.5 - paddle.height / 2
        clamp_paddle(paddle)

    ball = state.ball
    if not all(math.isfinite(v) for v in (ball.x, ball.y, ball.vx, ball.vy)):
        serve(ball, rng=rng, speed=settings.ball_speed)
        return
    ball.x = clamp(ball.x, 0.0, 1.0)
    ball.y = clamp(ball.y, 0.0, 1.0)


def new_game_state(*, settings: Settings, seed: int, rng: random.Random) -> GameState:
    def _paddle(up_key: str, down_key: str) -> Paddle:
        return Paddle(
            up_key=up_key,
            down_key=down_key,
            position=0.5 - settings.paddle_height / 2,
            height=settings.paddle_height,
        )

    state = GameState(
        left=_paddle(settings.left_up_key, settings.left_down_key),
        right=_paddle(settings.right_up_key, settings.right_down_key),
        ball=Ball(radius=settings.ball_radius),
        paused=settings.start_paused,
        seed=seed,
    )
    serve(state.ball, rng=rng, speed=settings.ball_speed)
    return state
