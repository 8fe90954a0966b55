"""Liveness and readiness endpoints."""

import time

from fastapi import APIRouter, Depends

from src.api.dependencies import get_scheduler
from src.application.dto.responses import HealthResponse, ProviderHealthResponse
from src.core.services import ReplenishmentScheduler

router = APIRouter(prefix="/api/health", tags=["health"])

VERSION = "1.0.0"
_started_at = time.monotonic()


def _health(status: str, **components: ProviderHealthResponse) -> HealthResponse:
    return HealthResponse(
        status=status,
        version=VERSION,
        uptime_seconds=time.monotonic() - _started_at,
        **components,
    )


async def _database_status() -> ProviderHealthResponse:
    from src.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        latency = await pool.ping()
    except Exception as e:
        return ProviderHealthResponse(name="sqlite", available=False, error=str(e))
    return ProviderHealthResponse(name="sqlite", available=True, latency_ms=latency)


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Process is up; touches nothing else."""
    return _health("healthy")


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    database = await _database_status()
    return _health("healthy" if database.available else "unhealthy", database=database)


@router.get("/full", response_model=HealthResponse)
async def full_health_check(
    scheduler: ReplenishmentScheduler = Depends(get_scheduler),
) -> HealthResponse:
    """
    Database reachability plus the replenishment loop.

    A stopped scheduler degrades the service; an unreachable database
    makes it unhealthy.
    """
    database = await _database_status()
    loop = ProviderHealthResponse(name="replenishment_scheduler", available=scheduler.is_started)

    if not database.available:
        status = "unhealthy"
    elif not loop.available:
        status = "degraded"
    else:
        status = "healthy"
    return _health(status, database=database, scheduler=loop)
