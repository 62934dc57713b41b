from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

import redis
from fastapi import APIRouter, Depends, HTTPException, Request, Response, WebSocket, WebSocketDisconnect, status
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import ValidationError
from starlette.formparsers import MultiPartException
from starlette.websockets import WebSocketState

from pong.api.deps import get_runtime
from pong.api.models import ClickRequest, KeyPressRequest, StateResponse
from pong.broadcast import Subscription
from pong.runtime import GameRuntime

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_fields(request: Request) -> dict[str, Any]:
    """Best-effort body decoding: JSON or form-encoded, else empty."""

    try:
        if request.headers.get("content-type", "").startswith("application/json"):
            body = await request.json()
            return body if isinstance(body, dict) else {}
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}
    except (ValueError, MultiPartException) as e:
        logger.debug("Unreadable request body on %s: %s", request.url.path, e)
        return {}


@router.get("/", response_class=HTMLResponse)
async def game_page(runtime: GameRuntime = Depends(get_runtime)) -> HTMLResponse:
    return HTMLResponse(runtime.render_page())


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/keypress", status_code=status.HTTP_204_NO_CONTENT)
async def keypress_route(request: Request, runtime: GameRuntime = Depends(get_runtime)) -> Response:
    fields = await _read_fields(request)
    try:
        payload = KeyPressRequest.model_validate(fields)
    except ValidationError as e:
        logger.debug("Ignoring malformed keypress %r: %s", fields, e)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    await runtime.keypress(payload.last_key, payload.transition)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/click", status_code=status.HTTP_204_NO_CONTENT)
async def click_route(request: Request, runtime: GameRuntime = Depends(get_runtime)) -> Response:
    fields = await _read_fields(request)
    try:
        payload = ClickRequest.model_validate(fields)
    except ValidationError as e:
        logger.debug("Ignoring malformed click %r: %s", fields, e)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    await runtime.click(payload.x, payload.y)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/game-sse")
async def game_sse(request: Request, runtime: GameRuntime = Depends(get_runtime)) -> StreamingResponse:
    keepalive = runtime.settings.sse_keepalive_s

    async def _stream() -> AsyncIterator[str]:
        sub = runtime.connect()
        try:
            while not sub.closed or sub.pending():
                if await request.is_disconnected():
                    break
                event = await sub.get(timeout=keepalive)
                if event is None:
                    if sub.closed:
                        break
                    yield ": keep-alive\n\n"
                    continue
                yield event.encode_sse()
        finally:
            # Must not await here: the task may already be cancelled.
            runtime.disconnect(sub)

    return StreamingResponse(
        _stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


async def _pump(websocket: WebSocket, sub: Subscription) -> None:
    async for event in sub.events():
        await websocket.send_json(event.as_json())
    # The hub closed the subscription (stalled viewer or shutdown).
    await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)


@router.websocket("/ws/game")
async def game_ws(websocket: WebSocket, runtime: GameRuntime = Depends(get_runtime)) -> None:
    await websocket.accept()
    sub = runtime.connect()
    pump = asyncio.create_task(_pump(websocket, sub))

    try:
        # Keep the socket open until either side closes it; clients may send pings.
        while websocket.application_state == WebSocketState.CONNECTED:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        runtime.disconnect(sub)
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await pump


@router.get("/state", response_model=StateResponse)
async def state_route(runtime: GameRuntime = Depends(get_runtime)) -> StateResponse:
    """Debug endpoint: the authoritative state plus the current viewer count."""

    snapshot = await runtime.engine.snapshot()
    return StateResponse(game=snapshot, viewers=runtime.hub.viewer_count)


@router.get("/events")
async def events_route(count: int = 20, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    """Debug endpoint: recent entries of the Redis event outbox."""

    if runtime.outbox is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event outbox disabled (REDIS_URL unset)")
    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    try:
        events = runtime.outbox.recent(count=count)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    return {"stream": runtime.outbox.stream_key, "events": events}
