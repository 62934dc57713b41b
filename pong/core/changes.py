from __future__ import annotations

from enum import StrEnum

from pong.api.models import GameState, Paddle


class Region(StrEnum):
    """A UI region; also the name of its push channel."""

    scoreboard = "scoreboard"
    bat_left = "bat_left"
    bat_right = "bat_right"
    ball = "ball"


ALL_REGIONS: frozenset[Region] = frozenset(Region)

# Stable push order: scoreboard first so a pause banner lands before movement.
REGION_ORDER: tuple[Region, ...] = (Region.scoreboard, Region.bat_left, Region.bat_right, Region.ball)


def _paddle_changed(before: Paddle, after: Paddle) -> bool:
    return (
        before.position != after.position
        or before.direction != after.direction
        or before.height != after.height
    )


def changed_regions(before: GameState, after: GameState) -> frozenset[Region]:
    """Regions whose rendered fragment depends on a field that differs."""

    changed: set[Region] = set()
    if (
        before.left.score != after.left.score
        or before.right.score != after.right.score
        or before.paused != after.paused
    ):
        changed.add(Region.scoreboard)
    if _paddle_changed(before.left, after.left):
        changed.add(Region.bat_left)
    if _paddle_changed(before.right, after.right):
        changed.add(Region.bat_right)
    if before.ball.x != after.ball.x or before.ball.y != after.ball.y:
        changed.add(Region.ball)
    return frozenset(changed)


def ordered(regions: frozenset[Region] | set[Region]) -> list[Region]:
    return [r for r in REGION_ORDER if r in regions]
