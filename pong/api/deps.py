from __future__ import annotations

from fastapi.requests import HTTPConnection

from pong.runtime import GameRuntime


def get_runtime(conn: HTTPConnection) -> GameRuntime:
    runtime = getattr(conn.app.state, "runtime", None)
    if runtime is None:
        raise RuntimeError("Game runtime not initialized. Is the app started?")
    return runtime
