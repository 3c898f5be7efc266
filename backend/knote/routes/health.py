"""
KNote Backend — Health Check Route
===================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database and reports the object store bootstrap state.

Status levels:
    - healthy:   database reachable and object store connected (HTTP 200)
    - degraded:  object store pending or unavailable; notes still work (HTTP 200)
    - unhealthy: database unreachable (HTTP 200, status field says so)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from knote import __version__
from knote.database import engine
from knote.schemas.note import HealthResponse
from knote.services.storage_bootstrap import storage_handle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not storage_handle.is_connected and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_handle.state.value,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
