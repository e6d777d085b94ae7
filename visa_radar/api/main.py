"""FastAPI backend for the visa radar.

The CRM pushes the live record projection and opening history in; operators
drive the radar, the cockpit and their alarms; effects flow back out through
the effect sink.  The radar is built once at startup.  Every endpoint is
``async`` so it runs on the event loop alongside the scheduler jobs and never
observes a half-finished scan.
"""

import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from apscheduler.schedulers import SchedulerNotRunningError  # type: ignore[import-untyped]
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from fastapi import FastAPI, HTTPException, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from visa_radar.config import get_settings
from visa_radar.observability.metrics import APP_INFO
from visa_radar.radar.actions import RecordNotFoundError, portal_url
from visa_radar.radar.cockpit import RankedRecord
from visa_radar.radar.models import (
    ApplicationStatus,
    MonitorableRecord,
    OpeningLogEntry,
    PendingAlert,
    TimeDisplay,
)
from visa_radar.radar.openings import opening_heatmap
from visa_radar.radar.service import RadarService, build_radar_service
from visa_radar.report.checklog import format_check_log_markdown

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SyncResponse(BaseModel):
    """Response body for PUT /records and PUT /openings."""

    count: int


class RadarStatus(BaseModel):
    """Response body for the /radar endpoints."""

    active: bool
    permission: str
    pending_alerts: int
    alerts: list[PendingAlert]


class ScanResponse(BaseModel):
    """Response body for POST /radar/scan."""

    new_alerts: list[PendingAlert]
    pending_alerts: int


class CockpitEntry(BaseModel):
    record: MonitorableRecord
    urgency_score: int
    history_match: bool
    time_display: TimeDisplay
    sort_score: float


class CockpitView(BaseModel):
    """Response body for the /cockpit endpoints."""

    index: int
    focused: CockpitEntry | None
    ranked: list[CockpitEntry]


class PromoteRequest(BaseModel):
    """Request body for POST /records/{record_id}/promote."""

    status: ApplicationStatus


class PortalResponse(BaseModel):
    url: str


class CheckLogResponse(BaseModel):
    report: str


class AlarmRequest(BaseModel):
    """Request body for POST /alarms."""

    time: str


class AlarmSetRequest(BaseModel):
    """Request body for PUT /alarms."""

    alarms: list[str]


class AlarmsResponse(BaseModel):
    alarms: list[str]
    banner: str | None = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str
    scheduler_running: bool
    radar_active: bool
    alarm_clock_running: bool
    records: int
    pending_alerts: int


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the radar and start its scheduler; cancel every loop on shutdown."""
    settings = get_settings()
    APP_INFO.info({"version": "0.1.0", "title": settings.app_title})

    scheduler = AsyncIOScheduler()
    service = build_radar_service(scheduler)
    app.state.scheduler = scheduler
    app.state.radar = service

    scheduler.start()
    service.alarm_clock.start()
    if settings.radar_autostart:
        service.radar.activate()
    logger.info("Visa radar ready")

    yield

    service.shutdown()
    with contextlib.suppress(SchedulerNotRunningError):
        scheduler.shutdown(wait=False)
    await service.effects.drain()
    logger.info("Shutting down visa radar")


app = FastAPI(title="Visa Radar", lifespan=lifespan)


def _service() -> RadarService:
    service: RadarService = app.state.radar
    return service


def _get_record(record_id: str) -> MonitorableRecord:
    try:
        return _service().registry.get(record_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _radar_status(service: RadarService) -> RadarStatus:
    return RadarStatus(
        active=service.radar.active,
        permission=service.notifier.permission,
        pending_alerts=len(service.queue),
        alerts=service.radar.visible_alerts(),
    )


def _cockpit_view(service: RadarService, ranked: list[RankedRecord]) -> CockpitView:
    entries = [CockpitEntry(**entry) for entry in ranked]
    return CockpitView(
        index=service.cockpit.index,
        focused=entries[service.cockpit.index] if entries else None,
        ranked=entries,
    )


def _rank(service: RadarService) -> list[RankedRecord]:
    return service.cockpit.rank(service.registry.records(), service.registry.openings(), datetime.now())


def _alarms_response(service: RadarService, alarms: list[str]) -> AlarmsResponse:
    return AlarmsResponse(alarms=alarms, banner=service.alarm_clock.current_banner())


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report whether the scheduler and both loops are alive."""
    service = _service()
    scheduler: AsyncIOScheduler = app.state.scheduler
    return HealthResponse(
        status="healthy" if scheduler.running else "unhealthy",
        scheduler_running=scheduler.running,
        radar_active=service.radar.active,
        alarm_clock_running=service.alarm_clock.running,
        records=len(service.registry.records()),
        pending_alerts=len(service.queue),
    )


# --- Collaborator inputs ---


@app.get("/records", response_model=list[MonitorableRecord])
async def list_records() -> list[MonitorableRecord]:
    return _service().registry.records()


@app.put("/records", response_model=SyncResponse)
async def sync_records(records: list[MonitorableRecord]) -> SyncResponse:
    """Replace the live record projection pushed by the CRM."""
    _service().actions.sync_records(records)
    return SyncResponse(count=len(records))


@app.put("/openings", response_model=SyncResponse)
async def sync_openings(openings: list[OpeningLogEntry]) -> SyncResponse:
    """Replace the opening-log history pushed by the CRM."""
    _service().registry.replace_openings(openings)
    return SyncResponse(count=len(openings))


@app.get("/openings/heatmap")
async def openings_heatmap() -> dict[str, int]:
    return opening_heatmap(_service().registry.openings())


# --- Radar ---


@app.get("/radar", response_model=RadarStatus)
async def radar_status() -> RadarStatus:
    return _radar_status(_service())


@app.post("/radar/activate", response_model=RadarStatus)
async def activate_radar() -> RadarStatus:
    service = _service()
    service.radar.activate()
    return _radar_status(service)


@app.post("/radar/deactivate", response_model=RadarStatus)
async def deactivate_radar() -> RadarStatus:
    service = _service()
    service.radar.deactivate()
    return _radar_status(service)


@app.post("/radar/scan", response_model=ScanResponse)
async def scan_now() -> ScanResponse:
    """Run one scan immediately instead of waiting for the next tick."""
    service = _service()
    added = service.radar.tick()
    return ScanResponse(new_alerts=added, pending_alerts=len(service.queue))


@app.get("/alerts", response_model=list[PendingAlert])
async def list_alerts() -> list[PendingAlert]:
    """Pending alerts; empty while the radar is deactivated."""
    return _service().radar.visible_alerts()


@app.delete("/alerts/{alert_id}", response_model=RadarStatus)
async def acknowledge_alert(alert_id: str) -> RadarStatus:
    service = _service()
    service.queue.acknowledge(alert_id)
    return _radar_status(service)


@app.delete("/alerts", response_model=RadarStatus)
async def clear_alerts() -> RadarStatus:
    """Ignore all pending alerts and stop the alarm."""
    service = _service()
    service.queue.clear_all()
    return _radar_status(service)


# --- Cockpit ---


@app.get("/cockpit", response_model=CockpitView)
async def cockpit() -> CockpitView:
    service = _service()
    return _cockpit_view(service, _rank(service))


@app.post("/cockpit/next", response_model=CockpitView)
async def cockpit_next() -> CockpitView:
    service = _service()
    ranked = _rank(service)
    service.cockpit.next()
    return _cockpit_view(service, ranked)


@app.post("/cockpit/previous", response_model=CockpitView)
async def cockpit_previous() -> CockpitView:
    service = _service()
    ranked = _rank(service)
    service.cockpit.previous()
    return _cockpit_view(service, ranked)


@app.post("/cockpit/focus/{index}", response_model=CockpitView)
async def cockpit_focus(index: int) -> CockpitView:
    service = _service()
    ranked = _rank(service)
    service.cockpit.focus(index)
    return _cockpit_view(service, ranked)


# --- Record actions ---


@app.post("/records/{record_id}/checked", response_model=MonitorableRecord)
async def mark_checked(record_id: str) -> MonitorableRecord:
    """Record that the operator just checked this record's portal."""
    try:
        return _service().actions.mark_checked(record_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/records/{record_id}/promote", response_model=MonitorableRecord)
async def promote(record_id: str, request: PromoteRequest) -> MonitorableRecord:
    try:
        return _service().actions.promote_status(record_id, request.status)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/records/{record_id}/portal", response_model=PortalResponse)
async def record_portal(record_id: str) -> PortalResponse:
    settings = get_settings()
    record = _get_record(record_id)
    return PortalResponse(url=portal_url(record, settings.centers, settings.default_portal_url))


@app.get("/records/{record_id}/check-log", response_model=CheckLogResponse)
async def record_check_log(record_id: str) -> CheckLogResponse:
    settings = get_settings()
    record = _get_record(record_id)
    return CheckLogResponse(report=format_check_log_markdown(record, datetime.now(), settings.app_title))


# --- Alarms ---


@app.get("/alarms", response_model=AlarmsResponse)
async def list_alarms() -> AlarmsResponse:
    service = _service()
    return _alarms_response(service, service.alarm_clock.alarms())


@app.post("/alarms", response_model=AlarmsResponse)
async def add_alarm(request: AlarmRequest) -> AlarmsResponse:
    service = _service()
    try:
        alarms = service.alarm_clock.add(request.time)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _alarms_response(service, alarms)


@app.put("/alarms", response_model=AlarmsResponse)
async def replace_alarms(request: AlarmSetRequest) -> AlarmsResponse:
    service = _service()
    try:
        alarms = service.alarm_clock.replace(request.alarms)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _alarms_response(service, alarms)


@app.delete("/alarms/{alarm_time}", response_model=AlarmsResponse)
async def remove_alarm(alarm_time: str) -> AlarmsResponse:
    service = _service()
    return _alarms_response(service, service.alarm_clock.remove(alarm_time))
