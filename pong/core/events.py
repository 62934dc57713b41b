from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "GOAL_SCORED",
    "PAUSED",
    "RESUMED",
    "VIEWER_JOINED",
    "VIEWER_LEFT",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    tick: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, tick: int, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, tick=tick, payload=payload, ts=datetime.now(timezone.utc))

    def as_fields(self) -> dict[str, str]:
        fields = {"type": self.type, "tick": str(self.tick), "ts": self.ts.isoformat()}
        fields.update({str(k): str(v) for k, v in self.payload.items()})
        return fields
