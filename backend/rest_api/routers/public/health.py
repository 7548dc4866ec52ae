"""
Health check endpoints for the REST API.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal
from shared.infrastructure.events import get_redis_pool
from shared.utils.health import HealthStatus, aggregate_health_checks, health_check_with_timeout


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """Liveness only. Dependencies are not touched."""
    return {
        "status": HealthStatus.HEALTHY.value,
        "service": "rest-api",
        "environment": settings.environment,
    }


@health_check_with_timeout(timeout=3.0, component="database")
async def check_database_health() -> None:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))


@health_check_with_timeout(timeout=3.0, component="redis")
async def check_redis_health() -> None:
    client = await get_redis_pool()
    await client.ping()


@router.get("/health/detailed")
async def detailed_health_check():
    """
    Probe the database and Redis.

    Returns 503 when either dependency is down.
    """
    report = await aggregate_health_checks([check_database_health(), check_redis_health()])
    body = {
        "status": report["status"],
        "service": "rest-api",
        "environment": settings.environment,
        "dependencies": report["components"],
    }
    if report["status"] != HealthStatus.HEALTHY.value:
        return JSONResponse(content=body, status_code=503)
    return body
