"""Replenishment scheduler endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_settings, get_scheduler
from src.application.dto.responses import (
    ErrorResponse,
    ReplenishmentReportResponse,
    ReplenishmentRequestResponse,
    SchedulerRunResponse,
    SchedulerStatusResponse,
)
from src.config import Settings
from src.core.services import ReplenishmentScheduler

router = APIRouter(prefix="/api/scheduler", tags=["scheduler"])


@router.get("/requests", response_model=list[ReplenishmentRequestResponse])
async def replenishment_requests(
    scheduler: ReplenishmentScheduler = Depends(get_scheduler),
) -> list[ReplenishmentRequestResponse]:
    """Preview the purchase orders a run would create."""
    requests = await scheduler.auto_requests()
    return [ReplenishmentRequestResponse.model_validate(r) for r in requests]


@router.post(
    "/run",
    response_model=SchedulerRunResponse,
    responses={503: {"model": ErrorResponse}},
)
async def run_replenishment(
    scheduler: ReplenishmentScheduler = Depends(get_scheduler),
) -> SchedulerRunResponse:
    """
    Run a scan now and wait for its report.

    If a run is already in progress this returns started=false and a
    single follow-up run is scheduled after it.
    """
    report = await scheduler.generate_auto_purchase_orders(reason="api")
    return SchedulerRunResponse(
        started=report is not None,
        report=ReplenishmentReportResponse.model_validate(report) if report else None,
    )


@router.get("/status", response_model=SchedulerStatusResponse)
async def scheduler_status(
    scheduler: ReplenishmentScheduler = Depends(get_scheduler),
    settings: Settings = Depends(get_app_settings),
) -> SchedulerStatusResponse:
    last = scheduler.last_report
    return SchedulerStatusResponse(
        enabled=settings.scheduler.enabled,
        started=scheduler.is_started,
        running=scheduler.is_running,
        interval_seconds=settings.scheduler.interval_seconds,
        dedupe_open_orders=settings.scheduler.dedupe_open_orders,
        last_report=ReplenishmentReportResponse.model_validate(last) if last else None,
    )
