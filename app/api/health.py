from fastapi import APIRouter
from sqlalchemy import text
import redis

from app.database import engine
from app.utils.cache import cache_service

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the database and, when caching is enabled, Redis are reachable."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Redis is reported but only required when caching is enabled.
    """
    checks = {
        "database": False,
        "redis": False
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    if cache_service.enabled:
        try:
            cache_service.client.ping()
            checks["redis"] = True
        except redis.RedisError as e:
            checks["redis_error"] = str(e)

    all_healthy = checks["database"] and (checks["redis"] or not cache_service.enabled)

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks
    }
