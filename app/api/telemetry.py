"""
Telemetry API Routes

Thin delegation layer over the scheduler and runner.
Contains NO generation, drift or reconciliation logic.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from app.core.config import settings
from app.dependencies import get_diagnosis_desk, get_runner, get_scheduler
from clients.live_feed import FeedError
from schemas.health import IdpHealth
from schemas.trace import WireModel
from telemetry.diagnosis import DiagnosisDesk
from telemetry.runner import TelemetryRunner
from telemetry.scheduler import (
    RestartInProgressError,
    RestartNotConfirmedError,
    TelemetryScheduler,
)
from telemetry.state import ChartPoint, SchedulerSnapshot


router = APIRouter()


class StatusResponse(SchedulerSnapshot):
    """Scheduler flags plus the monitored host."""
    hostname: str


class RestartRequest(BaseModel):
    """API request for a service restart."""
    confirm: bool = Field(False, description="Operator confirmation; the restart interrupts live logins")


class RestartResponse(WireModel):
    record_id: str = Field(..., description="ID of the shutdown record added to the buffer")
    restart_delay_seconds: float


class DiagnosisResponse(WireModel):
    record_id: str
    analysis: str


@router.get("/status", response_model=StatusResponse)
def get_status(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> StatusResponse:
    snapshot = scheduler.snapshot()
    return StatusResponse(**snapshot.model_dump(), hostname=settings.idp_hostname)


@router.get("/logs")
def list_logs(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> List[dict]:
    """Displayed records, newest first, in wire format."""
    return [record.to_wire() for record in scheduler.logs]


@router.get("/logs/{record_id}")
def get_log(record_id: str, scheduler: TelemetryScheduler = Depends(get_scheduler)) -> dict:
    record = scheduler.find(record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No record {record_id}")
    return record.to_wire()


@router.get("/metrics", response_model=IdpHealth)
def get_metrics(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> IdpHealth:
    return scheduler.health


@router.get("/chart", response_model=List[ChartPoint])
def get_chart(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> List[ChartPoint]:
    return scheduler.chart_series()


@router.post("/pause", response_model=StatusResponse)
def pause(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> StatusResponse:
    try:
        scheduler.pause()
    except RestartInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return get_status(scheduler)


@router.post("/resume", response_model=StatusResponse)
def resume(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> StatusResponse:
    try:
        scheduler.resume()
    except RestartInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return get_status(scheduler)


@router.post("/mode/live", response_model=StatusResponse)
def force_live(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> StatusResponse:
    scheduler.force_live()
    return get_status(scheduler)


@router.post("/restart", response_model=RestartResponse, status_code=status.HTTP_202_ACCEPTED)
async def restart(request: RestartRequest, runner: TelemetryRunner = Depends(get_runner)) -> RestartResponse:
    """
    Simulated Jetty restart. Returns once the shutdown has begun; the
    gauges come back after the restart delay.
    """
    try:
        record = runner.schedule_restart(request.confirm)
    except RestartNotConfirmedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RestartInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return RestartResponse(record_id=record.id, restart_delay_seconds=settings.restart_delay_seconds)


@router.post("/logs/{record_id}/diagnosis", response_model=DiagnosisResponse)
async def diagnose(
    record_id: str,
    scheduler: TelemetryScheduler = Depends(get_scheduler),
    desk: DiagnosisDesk = Depends(get_diagnosis_desk),
) -> DiagnosisResponse:
    record = scheduler.find(record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No record {record_id}")
    analysis = await desk.diagnose(record)
    return DiagnosisResponse(record_id=record_id, analysis=analysis)


@router.delete("/logs/{record_id}/diagnosis", status_code=status.HTTP_204_NO_CONTENT)
def clear_diagnosis(record_id: str, desk: DiagnosisDesk = Depends(get_diagnosis_desk)) -> None:
    desk.clear(record_id)


@router.get("/debug", response_class=PlainTextResponse)
async def debug(scheduler: TelemetryScheduler = Depends(get_scheduler)) -> str:
    """Backend debug output, passed through for a human operator."""
    if scheduler.feed is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="No live feed configured")
    try:
        return await scheduler.feed.debug()
    except FeedError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
