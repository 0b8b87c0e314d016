"""Health check endpoint."""

import time

from fastapi import APIRouter

from ... import __version__
from ...config.logging import get_logger
from ...ormdb.database import check_database_health
from ..models.responses import HealthResponse, HealthStatus

logger = get_logger(__name__)
router = APIRouter()

# Track application start time for uptime calculation
_app_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Basic Health Check")
def basic_health_check() -> HealthResponse:
    """
    Report database connectivity and uptime.

    The endpoint itself always answers 200; an unreachable database shows up
    as an unhealthy status in the body.
    """
    db_health = check_database_health()
    overall_status = "healthy" if db_health["status"] == "healthy" else "unhealthy"

    health_status = HealthStatus(
        status=overall_status,
        services={"database": db_health},
        uptime_seconds=time.time() - _app_start_time,
        version=__version__,
    )

    logger.debug("Basic health check completed", status=overall_status)
    return HealthResponse(success=True, health=health_status)
