"""
ReadSync Backend — Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer health checks.
How:   Checks the two external collaborators and returns an aggregate status.

    Status levels:
    - healthy:   Database and identity provider reachable (HTTP 200)
    - degraded:  Identity provider down; stored records still readable (HTTP 200)
    - unhealthy: Database down (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text

from readsync import __version__
from readsync.database import engine
from readsync.dependencies import get_identity_provider
from readsync.schemas.common import HealthResponse
from readsync.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> HealthResponse:
    """
    Check the database with SELECT 1 and the identity provider with its
    health endpoint.
    """
    db_status = "connected"
    identity_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await identity.health_check():
        identity_status = "unavailable"
        if overall != "unhealthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        identity=identity_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
