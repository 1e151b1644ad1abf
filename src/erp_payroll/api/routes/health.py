"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from erp_payroll.api.dependencies import SessionFactory
from erp_payroll.config import get_settings
from erp_payroll.models import SalaryConfig

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str
    salary_configs: int | None = None


async def _count_active_configs(session_factory) -> int | None:
    """Active salary config rows, or None when the payroll tables are unreachable."""
    try:
        async with session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(SalaryConfig).where(SalaryConfig.is_active.is_(True))
            )
            return result.scalar_one()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Payroll database check failed: %s", e)
        return None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(session_factory: SessionFactory) -> HealthResponse:
    """Check API and database health."""
    reachable = await _count_active_configs(session_factory) is not None

    return HealthResponse(
        status="healthy" if reachable else "degraded",
        timestamp=datetime.now(timezone.utc),
        database="healthy" if reachable else "unhealthy",
        version=get_settings().engine_version,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(session_factory: SessionFactory):
    """Ready once the salary config table can be read."""
    configs = await _count_active_configs(session_factory)
    if configs is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "salary_configs": None},
        )
    return ReadinessResponse(status="ready", salary_configs=configs)


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
