from fastapi import FastAPI
import logging

from pong.api.routes import router
from pong.runtime import build_runtime
from pong.settings import get_settings

app = FastAPI(title="htmx-pong", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    settings = get_settings()
    runtime = build_runtime(settings)
    app.state.runtime = runtime
    await runtime.start()
    logger.info("Game runtime started (viewers connect via /game-sse or /ws/game)")


@app.on_event("shutdown")
async def _shutdown() -> None:
    runtime = getattr(app.state, "runtime", None)
    if runtime is not None:
        await runtime.stop()
        app.state.runtime = None


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "htmx-pong", "version": "0.1.0"}
