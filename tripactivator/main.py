from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tripactivator.config import settings
from tripactivator.routers.active_trips_api import router as active_trips_router
from tripactivator.services.trip_activator import get_activator

logging.basicConfig(
    level=getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # index must be frozen before the first request is served
    get_activator()
    yield


app = FastAPI(title="tripactivator", lifespan=lifespan)
app.include_router(active_trips_router)


@app.get("/healthz")
def healthz():
    return {"ok": True}
