"""
TechGear Catalog Backend — Root & Health Routes
=================================================

What:  GET / (liveness banner) and GET /health (dependency status).
Why:   Load balancers and uptime monitors need a cheap probe; /health also
       reports the database handle state without blocking on it.

Status levels:
    healthy:   database reachable (HTTP 200)
    unhealthy: database not configured or unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from app import __version__
from app.database import DatabaseHandle, get_db_handle
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Service banner")
async def root() -> str:
    return "Tech Gear Server is Running!"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(handle: DatabaseHandle = Depends(get_db_handle)):
    """
    Probe the database once (no readiness polling) and report its state.

    Why a single probe: health checks run every few seconds; waiting through
    the full readiness budget would make the probe itself time out.
    """
    if handle.configured and not handle.is_ready:
        await handle.connect()

    healthy = handle.is_ready
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        database=handle.state.value,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not healthy:
        logger.warning("Health check: database %s", handle.state.value)
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
