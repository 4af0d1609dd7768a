"""
Attendance session service: clock in/out and lunch per (worker, work date, project).

All timestamps are server UTC from the injected Clock; work_date is the
calendar date in WORK_TIMEZONE. Session state is derived from the record's
timestamps on every read.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import LOG_TYPE_CHECK_IN, LOG_TYPE_CHECK_OUT
from app.core.exceptions import (
    AlreadyClockedIn,
    CannotClockOutDuringLunch,
    InvalidState,
    LunchAlreadyActive,
    NotClockedIn,
    OutsideGeofence,
)
from app.models.attendance import AttendanceEvent, AttendanceEventType, AttendanceRecord, SessionState
from app.services.audit_service import log_audit
from app.services.geofence import GeofenceResult, validate_project_location
from app.services.location_log_service import add_location_log
from app.services.project_service import get_project
from app.utils.concurrency import run_unit_of_work
from app.utils.datetime_utils import Clock, seconds_between
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


@dataclass
class AttendanceStatus:
    work_date: date
    session: SessionState
    record: Optional[AttendanceRecord]
    elapsed_seconds: int
    worked_seconds: int


def _geo_snapshot(lat: Optional[float], lng: Optional[float], accuracy: Optional[float],
                  result: Optional[GeofenceResult], source: str) -> Optional[dict]:
    if lat is None or lng is None:
        return None
    geo = {"lat": lat, "lng": lng, "accuracy": accuracy, "source": source}
    if result is not None:
        geo.update({"distance_m": round(result.distance, 2), "allowed_distance_m": round(result.allowed_distance, 2)})
    return geo


def _add_event(db: Session, record: AttendanceRecord, event_type: AttendanceEventType,
               at: datetime, meta: Optional[dict] = None) -> None:
    db.add(AttendanceEvent(
        record_id=record.id,
        employee_id=record.employee_id,
        event_type=event_type,
        event_at=at,
        meta_json=sanitize_for_json(meta) if meta else None,
    ))


def _open_record(db: Session, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
    """Today's record with a check-in and no check-out, on any project."""
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.work_date == work_date,
            AttendanceRecord.check_in_at.isnot(None),
            AttendanceRecord.check_out_at.is_(None),
        )
        .first()
    )


def get_day_record(db: Session, employee_id: int, work_date: date, project_id: int) -> Optional[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.work_date == work_date,
            AttendanceRecord.project_id == project_id,
        )
        .first()
    )


def session_state_for(db: Session, clock: Clock, employee_id: int, project_id: int) -> SessionState:
    """Current state of the worker's session on a project for today."""
    record = get_day_record(db, employee_id, clock.today(), project_id)
    return record.session_state if record else SessionState.NOT_LOGGED_IN


def clock_in(
    db: Session,
    clock: Clock,
    employee_id: int,
    project_id: int,
    lat: Optional[float],
    lng: Optional[float],
    accuracy: Optional[float] = None,
    *,
    source: str = "MOBILE",
) -> AttendanceRecord:
    """
    Clock in: location must be inside the project geofence (radius + variance).
    A worker has at most one open check-in per day, and a project's record is
    closed for the day once checked out.
    """
    now = clock.now()
    work_date = clock.work_date(now)
    project = get_project(db, project_id)

    result = validate_project_location(project, lat, lng, accuracy)
    if not result.compliant:
        raise OutsideGeofence(result.distance, result.allowed_distance)

    def work() -> AttendanceRecord:
        open_record = _open_record(db, employee_id, work_date)
        if open_record is not None:
            raise AlreadyClockedIn(projectId=open_record.project_id)
        if get_day_record(db, employee_id, work_date, project_id) is not None:
            raise AlreadyClockedIn("Already clocked out for today on this project", projectId=project_id)

        record = AttendanceRecord(
            employee_id=employee_id,
            project_id=project_id,
            work_date=work_date,
            check_in_at=now,
            check_in_geo=sanitize_for_json(_geo_snapshot(lat, lng, accuracy, result, source)),
            inside_geofence_at_checkin=result.compliant,
            check_in_distance_m=round(result.distance, 2),
        )
        db.add(record)
        db.flush()
        _add_event(db, record, AttendanceEventType.CLOCK_IN, now, {"source": source, "geo": record.check_in_geo})
        add_location_log(
            db, employee_id=employee_id, project=project, lat=lat, lng=lng, accuracy=accuracy,
            result=result, log_type=LOG_TYPE_CHECK_IN, at=now,
        )
        log_audit(
            db=db,
            at=now,
            actor_id=employee_id,
            action="ATTENDANCE_CLOCK_IN",
            entity=record,
            meta={"work_date": work_date, "project_id": project_id, "distance_m": round(result.distance, 2)},
        )
        return record

    record = run_unit_of_work(db, employee_id, work_date, work)
    db.refresh(record)
    logger.info("clock_in: employee_id=%s project_id=%s work_date=%s record_id=%s",
              employee_id, project_id, work_date, record.id)
    return record


def clock_out(
    db: Session,
    clock: Clock,
    employee_id: int,
    project_id: int,
    lat: Optional[float],
    lng: Optional[float],
    accuracy: Optional[float] = None,
    *,
    source: str = "MOBILE",
) -> AttendanceRecord:
    """
    Clock out. Geofence compliance is recorded on the record but does not
    block the check-out.
    """
    now = clock.now()
    work_date = clock.work_date(now)
    project = get_project(db, project_id)
    result = validate_project_location(project, lat, lng, accuracy)

    def work() -> AttendanceRecord:
        record = get_day_record(db, employee_id, work_date, project_id)
        state = record.session_state if record else SessionState.NOT_LOGGED_IN
        if state in (SessionState.NOT_LOGGED_IN, SessionState.CHECKED_OUT):
            raise NotClockedIn("No open check-in for this project today", currentState=state.value)
        if state == SessionState.ON_LUNCH:
            raise CannotClockOutDuringLunch()

        record.check_out_at = now
        record.check_out_geo = sanitize_for_json(_geo_snapshot(lat, lng, accuracy, result, source))
        record.inside_geofence_at_checkout = result.compliant
        record.check_out_distance_m = round(result.distance, 2)
        db.flush()
        _add_event(db, record, AttendanceEventType.CLOCK_OUT, now, {"source": source, "geo": record.check_out_geo})
        add_location_log(
            db, employee_id=employee_id, project=project, lat=lat, lng=lng, accuracy=accuracy,
            result=result, log_type=LOG_TYPE_CHECK_OUT, at=now,
        )
        log_audit(
            db=db,
            at=now,
            actor_id=employee_id,
            action="ATTENDANCE_CLOCK_OUT",
            entity=record,
            meta={"work_date": work_date, "inside_geofence": result.compliant},
        )
        return record

    record = run_unit_of_work(db, employee_id, work_date, work)
    db.refresh(record)
    if not result.compliant:
        logger.warning("clock_out outside geofence: employee_id=%s project_id=%s distance=%.1fm allowed=%.1fm",
                     employee_id, project_id, result.distance, result.allowed_distance)
    logger.info("clock_out: employee_id=%s project_id=%s record_id=%s", employee_id, project_id, record.id)
    return record


def start_lunch(
    db: Session,
    clock: Clock,
    employee_id: int,
    project_id: int,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> AttendanceRecord:
    """Start the day's lunch break; one break per record."""
    now = clock.now()
    work_date = clock.work_date(now)
    get_project(db, project_id)

    def work() -> AttendanceRecord:
        record = get_day_record(db, employee_id, work_date, project_id)
        state = record.session_state if record else SessionState.NOT_LOGGED_IN
        if state == SessionState.ON_LUNCH:
            raise LunchAlreadyActive()
        if state != SessionState.CHECKED_IN:
            raise NotClockedIn("Must be clocked in to start lunch break", currentState=state.value)
        if record.lunch_start_at is not None:
            raise LunchAlreadyActive("Lunch break already taken today")

        record.lunch_start_at = now
        db.flush()
        _add_event(db, record, AttendanceEventType.LUNCH_START, now, {"lat": lat, "lng": lng})
        log_audit(db=db, at=now, actor_id=employee_id, action="ATTENDANCE_LUNCH_START",
                  entity=record)
        return record

    record = run_unit_of_work(db, employee_id, work_date, work)
    db.refresh(record)
    logger.info("start_lunch: employee_id=%s record_id=%s", employee_id, record.id)
    return record


def end_lunch(
    db: Session,
    clock: Clock,
    employee_id: int,
    project_id: int,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> AttendanceRecord:
    """End an active lunch break."""
    now = clock.now()
    work_date = clock.work_date(now)
    get_project(db, project_id)

    def work() -> AttendanceRecord:
        record = get_day_record(db, employee_id, work_date, project_id)
        state = record.session_state if record else SessionState.NOT_LOGGED_IN
        if state in (SessionState.NOT_LOGGED_IN, SessionState.CHECKED_OUT):
            raise NotClockedIn("Must be clocked in to end lunch break", currentState=state.value)
        if state != SessionState.ON_LUNCH:
            raise InvalidState("Lunch break not started", currentState=state.value)

        record.lunch_end_at = now
        db.flush()
        _add_event(db, record, AttendanceEventType.LUNCH_END, now, {"lat": lat, "lng": lng})
        log_audit(db=db, at=now, actor_id=employee_id, action="ATTENDANCE_LUNCH_END",
                  entity=record)
        return record

    record = run_unit_of_work(db, employee_id, work_date, work)
    db.refresh(record)
    logger.info("end_lunch: employee_id=%s record_id=%s", employee_id, record.id)
    return record


def elapsed_seconds(record: Optional[AttendanceRecord], now: datetime) -> int:
    """Current session time: now - check-in while CHECKED_IN, 0 in every other state."""
    if record is None or record.session_state != SessionState.CHECKED_IN:
        return 0
    return seconds_between(record.check_in_at, now)


def worked_seconds(record: Optional[AttendanceRecord]) -> int:
    """Closed session length minus the lunch break; 0 until checked out."""
    if record is None or record.session_state != SessionState.CHECKED_OUT:
        return 0
    total = seconds_between(record.check_in_at, record.check_out_at)
    lunch = seconds_between(record.lunch_start_at, record.lunch_end_at)
    return max(0, total - lunch)


def get_status(
    db: Session,
    clock: Clock,
    employee_id: int,
    project_id: Optional[int] = None,
) -> AttendanceStatus:
    """
    Today's session. With a project id, that project's record; otherwise the
    open record, falling back to the most recent record of the day.
    """
    now = clock.now()
    work_date = clock.work_date(now)
    if project_id is not None:
        record = get_day_record(db, employee_id, work_date, project_id)
    else:
        record = _open_record(db, employee_id, work_date) or (
            db.query(AttendanceRecord)
            .filter(AttendanceRecord.employee_id == employee_id, AttendanceRecord.work_date == work_date)
            .order_by(AttendanceRecord.check_in_at.desc())
            .first()
        )
    return AttendanceStatus(
        work_date=work_date,
        session=record.session_state if record else SessionState.NOT_LOGGED_IN,
        record=record,
        elapsed_seconds=elapsed_seconds(record, now),
        worked_seconds=worked_seconds(record),
    )


def list_history(
    db: Session,
    employee_id: int,
    from_date: date,
    to_date: date,
    project_id: Optional[int] = None,
) -> List[AttendanceRecord]:
    """Own attendance records in a date range, newest first."""
    if from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from must be less than or equal to to",
        )
    query = db.query(AttendanceRecord).filter(
        AttendanceRecord.employee_id == employee_id,
        AttendanceRecord.work_date >= from_date,
        AttendanceRecord.work_date <= to_date,
    )
    if project_id is not None:
        query = query.filter(AttendanceRecord.project_id == project_id)
    return query.order_by(AttendanceRecord.work_date.desc(), AttendanceRecord.check_in_at.desc()).all()
