"""Health check endpoint.

Verifies connectivity to the record store and returns structured status.
"""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from confidential_swap.logging_config import get_logger
from confidential_swap.schemas.swap import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check() -> HealthResponse:
    """Check connectivity to the database."""
    from confidential_swap.infrastructure.database.engine import _get_engine

    try:
        async with _get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as exc:
        db_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    return HealthResponse(
        status="ok" if db_status == "healthy" else "degraded",
        version="0.1.0",
        database=db_status,
    )
