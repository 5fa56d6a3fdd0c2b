"""
LoveAlbum Backend — Health Check Route
=======================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Pings the database and reports album cache size and uptime.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app import __version__
from app.database import ping_database
from app.schemas.common import HealthResponse
from app.services.album_cache import album_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health_check():
    db_status = "connected"
    try:
        await ping_database()
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status="healthy" if db_status == "connected" else "unhealthy",
        version=__version__,
        database=db_status,
        cache={"size": len(album_cache)},
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if db_status != "connected":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
