"""
Health check endpoints
"""
from typing import Any, Dict

from fastapi import APIRouter
from sqlalchemy import text

from taxonomy_api.api.deps import AsyncSessionDep
from taxonomy_api.core.config import settings
from taxonomy_api.core.logging import log
from taxonomy_api.schemas.common import HealthCheckResponse
from taxonomy_api.utils.timestamps import utc_now


router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Basic health check"""
    return HealthCheckResponse(
        status="ok",
        timestamp=utc_now().isoformat(),
        version=settings.VERSION,
        database="unknown"
    )


@router.get("/health/ready", response_model=Dict[str, Any])
async def readiness_probe(session: AsyncSessionDep) -> Dict[str, Any]:
    """
    Readiness probe - checks the database
    """
    database = False
    try:
        result = await session.execute(text("SELECT 1"))
        database = result.scalar() == 1
    except Exception as e:
        log.error(f"Database health check failed: {e}")

    return {
        "status": "ok" if database else "degraded",
        "timestamp": utc_now().isoformat(),
        "checks": {"database": database},
    }
