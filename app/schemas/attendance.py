"""
Attendance schemas. Requests accept camelCase or snake_case keys; responses are
camelCase with datetimes in the work time zone.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_serializer

from app.models.attendance import SessionState
from app.schemas.common import CamelModel, CamelRequest
from app.schemas.project import ProjectGeofenceDto
from app.utils.datetime_utils import iso_work_tz


class LocationRequest(CamelRequest):
    """A reported position for a project. Missing lat/lon is rejected by the service, not here."""
    project_id: int = Field(..., description="Project the worker is on")
    lat: Optional[float] = Field(None, ge=-90, le=90, description="GPS latitude")
    lon: Optional[float] = Field(None, ge=-180, le=180, description="GPS longitude")
    accuracy: Optional[float] = Field(None, gt=0, description="Reported accuracy radius in meters")


class ClockRequest(LocationRequest):
    source: str = Field(default="MOBILE", description="MOBILE/WEB/KIOSK")


class LunchRequest(LocationRequest):
    pass


class AttendanceRecordDto(CamelModel):
    """One worker's attendance for one project and work date."""
    id: int
    employee_id: int
    project_id: int
    work_date: date
    session: SessionState
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    lunch_start_time: Optional[datetime] = None
    lunch_end_time: Optional[datetime] = None
    inside_geofence_at_checkin: Optional[bool] = None
    inside_geofence_at_checkout: Optional[bool] = None
    check_in_distance_m: Optional[float] = None
    check_out_distance_m: Optional[float] = None
    check_in_geo: Optional[Dict[str, Any]] = None
    check_out_geo: Optional[Dict[str, Any]] = None

    @field_serializer("check_in_time", "check_out_time", "lunch_start_time", "lunch_end_time", when_used="always")
    def _serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_work_tz(dt)

    @classmethod
    def from_record(cls, record) -> "AttendanceRecordDto":
        return cls(
            id=record.id,
            employee_id=record.employee_id,
            project_id=record.project_id,
            work_date=record.work_date,
            session=record.session_state,
            check_in_time=record.check_in_at,
            check_out_time=record.check_out_at,
            lunch_start_time=record.lunch_start_at,
            lunch_end_time=record.lunch_end_at,
            inside_geofence_at_checkin=record.inside_geofence_at_checkin,
            inside_geofence_at_checkout=record.inside_geofence_at_checkout,
            check_in_distance_m=record.check_in_distance_m,
            check_out_distance_m=record.check_out_distance_m,
            check_in_geo=record.check_in_geo,
            check_out_geo=record.check_out_geo,
        )


class AttendanceActionResponse(CamelModel):
    status: SessionState
    record: AttendanceRecordDto

    @classmethod
    def from_record(cls, record) -> "AttendanceActionResponse":
        return cls(status=record.session_state, record=AttendanceRecordDto.from_record(record))


class AttendanceStatusDto(CamelModel):
    """Today's session as seen by the mobile home screen."""
    work_date: date
    session: SessionState
    project_id: Optional[int] = None
    record_id: Optional[int] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    lunch_start_time: Optional[datetime] = None
    lunch_end_time: Optional[datetime] = None
    elapsed_seconds: int = 0
    worked_seconds: int = 0

    @field_serializer("check_in_time", "check_out_time", "lunch_start_time", "lunch_end_time", when_used="always")
    def _serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_work_tz(dt)

    @classmethod
    def from_status(cls, status) -> "AttendanceStatusDto":
        record = status.record
        return cls(
            work_date=status.work_date,
            session=status.session,
            project_id=record.project_id if record else None,
            record_id=record.id if record else None,
            check_in_time=record.check_in_at if record else None,
            check_out_time=record.check_out_at if record else None,
            lunch_start_time=record.lunch_start_at if record else None,
            lunch_end_time=record.lunch_end_at if record else None,
            elapsed_seconds=status.elapsed_seconds,
            worked_seconds=status.worked_seconds,
        )


class GeofenceCheckResponse(CamelModel):
    """Server-side verdict for a position, plus the geofence it was measured against."""
    project_id: int
    compliant: bool
    distance: float
    allowed_distance: float
    inside_radius: bool
    geofence: ProjectGeofenceDto


class LocationLogDto(CamelModel):
    id: int
    employee_id: int
    project_id: int
    lat: float
    lon: float
    accuracy: Optional[float] = None
    distance_m: float
    inside_geofence: bool
    log_type: str
    logged_at: datetime

    @field_serializer("logged_at", when_used="always")
    def _serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_work_tz(dt)

    @classmethod
    def from_log(cls, entry) -> "LocationLogDto":
        return cls(
            id=entry.id,
            employee_id=entry.employee_id,
            project_id=entry.project_id,
            lat=entry.lat,
            lon=entry.lng,
            accuracy=entry.accuracy,
            distance_m=entry.distance_m,
            inside_geofence=entry.inside_geofence,
            log_type=entry.log_type,
            logged_at=entry.logged_at,
        )


class AttendanceHistoryResponse(BaseModel):
    items: List[AttendanceRecordDto]
    total: int
