"""
Attendance endpoints for the signed-in worker: clock in/out, lunch, status,
geofence pre-check, location pings and history.

Mutating routes are plain `def` so they run in the threadpool while holding
the per-worker day lock.
"""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_clock, get_current_user, get_db, resolve_worker_scope
from app.models.employee import Employee
from app.schemas.attendance import (
    AttendanceActionResponse,
    AttendanceHistoryResponse,
    AttendanceRecordDto,
    AttendanceStatusDto,
    ClockRequest,
    GeofenceCheckResponse,
    LocationLogDto,
    LocationRequest,
    LunchRequest,
)
from app.schemas.project import ProjectGeofenceDto
from app.services import attendance_session_service as sessions
from app.services.geofence import validate_project_location
from app.services.location_log_service import log_position
from app.services.project_service import get_project
from app.utils.datetime_utils import Clock

router = APIRouter()
_log = logging.getLogger(__name__)


@router.post("/clock-in", response_model=AttendanceActionResponse, status_code=201)
def clock_in_endpoint(
    body: ClockRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """
    Clock in on a project. The position must be inside the project geofence.
    400 OutsideGeofence carries distance and allowedDistance.
    """
    record = sessions.clock_in(
        db, clock, current_user.id, body.project_id, body.lat, body.lon, body.accuracy, source=body.source,
    )
    return AttendanceActionResponse.from_record(record)


@router.post("/clock-out", response_model=AttendanceActionResponse)
def clock_out_endpoint(
    body: ClockRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """Clock out. Being outside the geofence is recorded, not rejected."""
    record = sessions.clock_out(
        db, clock, current_user.id, body.project_id, body.lat, body.lon, body.accuracy, source=body.source,
    )
    return AttendanceActionResponse.from_record(record)


@router.post("/lunch-start", response_model=AttendanceActionResponse)
def lunch_start_endpoint(
    body: LunchRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    record = sessions.start_lunch(db, clock, current_user.id, body.project_id, body.lat, body.lon)
    return AttendanceActionResponse.from_record(record)


@router.post("/lunch-end", response_model=AttendanceActionResponse)
def lunch_end_endpoint(
    body: LunchRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    record = sessions.end_lunch(db, clock, current_user.id, body.project_id, body.lat, body.lon)
    return AttendanceActionResponse.from_record(record)


@router.get("/status", response_model=AttendanceStatusDto)
async def status_endpoint(
    project_id: Optional[int] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """Today's session state, timestamps and elapsed seconds."""
    return AttendanceStatusDto.from_status(sessions.get_status(db, clock, current_user.id, project_id))


@router.post("/validate-geofence", response_model=GeofenceCheckResponse)
async def validate_geofence_endpoint(
    body: LocationRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Server-side pre-check of a position against a project geofence.
    Nothing is recorded.
    """
    project = get_project(db, body.project_id)
    result = validate_project_location(project, body.lat, body.lon, body.accuracy)
    _log.debug("validate_geofence: employee_id=%s project_id=%s %s", current_user.id, project.id, result.as_dict())
    return GeofenceCheckResponse(
        project_id=project.id,
        compliant=result.compliant,
        distance=round(result.distance, 2),
        allowed_distance=round(result.allowed_distance, 2),
        inside_radius=result.inside_radius,
        geofence=ProjectGeofenceDto.from_project(project),
    )


@router.post("/location-log", response_model=LocationLogDto, status_code=201)
def location_log_endpoint(
    body: LocationRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """Record a periodic position ping with its geofence verdict."""
    entry = log_position(db, clock, current_user.id, body.project_id, body.lat, body.lon, body.accuracy)
    return LocationLogDto.from_log(entry)


@router.get("/history", response_model=AttendanceHistoryResponse)
async def history_endpoint(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    worker_id: Optional[int] = Query(None, alias="workerId"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Attendance records between from and to (inclusive), newest first. Workers
    see their own; supervisors and admins may pass workerId.
    """
    target = resolve_worker_scope(worker_id, current_user)
    records = sessions.list_history(db, target, from_date, to_date, project_id)
    items = [AttendanceRecordDto.from_record(r) for r in records]
    return AttendanceHistoryResponse(items=items, total=len(items))
