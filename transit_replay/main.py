from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from transit_replay.adapters.api.controllers.simulation import (
    router as simulation_router,
)
from transit_replay.adapters.api.dependencies import (
    get_simulation_service,
    tick_interval_s,
)
from transit_replay.app.services.virtual_clock import run_clock
from transit_replay.domain.exceptions import GtfsLoadError, InvalidConfiguration


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Load the feed before serving; a GtfsLoadError here aborts startup.
    service = get_simulation_service()
    task = asyncio.create_task(run_clock(service.clock, interval_s=tick_interval_s()))
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Transit Replay", lifespan=lifespan)
app.include_router(simulation_router)


@app.exception_handler(InvalidConfiguration)
async def invalid_configuration_handler(
    request: Request, exc: InvalidConfiguration
) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so map clients can display them."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("TRANSIT_REPLAY_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (GtfsLoadError, FileNotFoundError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def run() -> None:
    import uvicorn

    uvicorn.run(
        "transit_replay.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
