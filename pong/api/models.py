from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Direction(StrEnum):
    up = "up"
    down = "down"
    idle = "idle"


class Side(StrEnum):
    left = "left"
    right = "right"


class Transition(StrEnum):
    press = "press"
    release = "release"


class Ball(BaseModel):
    # Center of the ball, as fractions of the play field.
    x: float = 0.5
    y: float = 0.5
    # Field units per second.
    vx: float = 0.0
    vy: float = 0.0
    radius: float = Field(default=0.01, ge=0)


class Paddle(BaseModel):
    up_key: str
    down_key: str

    # Top edge of the paddle; kept within [0, 1 - height].
    position: float
    height: float = Field(..., gt=0, lt=1)
    direction: Direction = Direction.idle
    score: int = Field(default=0, ge=0)

    @property
    def bottom(self) -> float:
        return self.position + self.height

    @property
    def center(self) -> float:
        return self.position + self.height / 2


class GameState(BaseModel):
    left: Paddle
    right: Paddle
    ball: Ball = Field(default_factory=Ball)

    paused: bool = True
    last_key: str | None = None

    # For reproducibility/debugging.
    seed: int = 0
    tick: int = 0

    @property
    def score_left(self) -> int:
        return self.left.score

    @property
    def score_right(self) -> int:
        return self.right.score

    def paddle(self, side: Side) -> Paddle:
        return self.left if side == Side.left else self.right


class KeyPressRequest(BaseModel):
    last_key: str | None = None
    transition: Transition | None = None


class ClickRequest(BaseModel):
    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)


class StateResponse(BaseModel):
    game: GameState
    viewers: int
