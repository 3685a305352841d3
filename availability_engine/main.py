import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import availability_engine.models  # noqa: F401 - register tables
from availability_engine.api.routes import availability_settings, bookings, calendar_blocks, slots
from availability_engine.core.config import _ENV_FILE, settings
from availability_engine.core.db import async_session_maker, init_db
from availability_engine.services.booking_service import expire_stale_pending_bookings

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


async def _run_pending_expiry() -> None:
    """Cancel pending bookings that were never confirmed within pending_booking_ttl_minutes."""
    try:
        async with async_session_maker() as session:
            try:
                n = await expire_stale_pending_bookings(session, settings.pending_booking_ttl_minutes)
                await session.commit()
                if n:
                    logger.info(
                        "Pending expiry: cancelled %d booking(s) unconfirmed after %d minutes",
                        n, settings.pending_booking_ttl_minutes,
                    )
            except Exception:
                await session.rollback()
                raise
    except Exception as e:
        logger.exception("Pending expiry failed: %s", e)


async def _maintenance_loop() -> None:
    while True:
        await asyncio.sleep(settings.maintenance_interval_seconds)
        await _run_pending_expiry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if settings.is_sqlite:
        # local development without migrations
        await init_db()
    await _run_pending_expiry()
    task = asyncio.create_task(_maintenance_loop())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    title="Availability Engine API",
    description="Bookable slots, calendar blocks and conflict-free reservations",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(slots.router, prefix="/api/v1")
app.include_router(bookings.router, prefix="/api/v1")
app.include_router(calendar_blocks.router, prefix="/api/v1")
app.include_router(availability_settings.router, prefix="/api/v1")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return the error as JSON instead of a bare 500 page."""
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
