"""Gigboard FastAPI application entrypoint.

This module wires the web application, configures CORS, checks MongoDB on
startup, mounts the gig router, and exposes the service status endpoints.
"""
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from database import ensure_indexes, ping_db
from routes.gigs import router as gigs_router
from utils import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Gigboard")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gigs_router)

# Last known store status, refreshed by the status endpoints
_db_connected = False


@app.on_event("startup")
async def startup() -> None:
    """Check store connectivity and make sure listing indexes exist."""
    global _db_connected
    _db_connected = await ping_db()
    if _db_connected:
        await ensure_indexes()
        logger.info("Indexes ensured on %s", config.DATABASE_NAME)


@app.get("/")
async def root() -> dict:
    """Basic liveness message."""
    return {
        "message": "Server is running!",
        "status": "connected",
        "database": "connected" if _db_connected else "disconnected",
    }


@app.get("/health")
async def health() -> dict:
    """Re-ping the store and report its state."""
    global _db_connected
    _db_connected = await ping_db()
    return {
        "status": "ok",
        "database": "connected" if _db_connected else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
