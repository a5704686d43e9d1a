"""
Groceree Backend - Health Check Route
=======================================

Probes the database (SELECT 1) and the blob store root. The service is
"healthy" only when both answer; otherwise it reports "unhealthy" with a
503 so orchestrators stop routing traffic to it.
"""

import logging
import time

from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from groceree import __version__
from groceree.database import engine
from groceree.schemas.common import HealthResponse
from groceree.services.blob_service import blob_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "A dependency is down", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not blob_store.is_available():
        storage_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: storage root missing: %s", blob_store.storage_root)

    if overall != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
