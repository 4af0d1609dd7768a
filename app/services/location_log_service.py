"""
Location log service: records each validated position with its geofence verdict.
"""
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from app.core.constants import LOG_TYPE_PING
from app.models.location_log import LocationLog
from app.models.project import Project
from app.services.geofence import GeofenceResult, validate_project_location
from app.services.project_service import get_project
from app.utils.datetime_utils import Clock

logger = logging.getLogger(__name__)


def add_location_log(
    db: Session,
    *,
    employee_id: int,
    project: Project,
    lat: float,
    lng: float,
    accuracy: Optional[float],
    result: GeofenceResult,
    log_type: str,
    at: datetime,
    task_assignment_id: Optional[int] = None,
) -> LocationLog:
    """Add a log row to the caller's unit of work (no commit)."""
    entry = LocationLog(
        employee_id=employee_id,
        project_id=project.id,
        lat=lat,
        lng=lng,
        accuracy=accuracy,
        distance_m=round(result.distance, 2),
        inside_geofence=result.compliant,
        log_type=log_type,
        task_assignment_id=task_assignment_id,
        logged_at=at,
    )
    db.add(entry)
    return entry


def log_position(
    db: Session,
    clock: Clock,
    employee_id: int,
    project_id: int,
    lat: Optional[float],
    lng: Optional[float],
    accuracy: Optional[float] = None,
) -> LocationLog:
    """
    Periodic position ping. The verdict is recorded, not enforced; a fix that
    is missing or too inaccurate is rejected rather than logged.
    """
    project = get_project(db, project_id)
    result = validate_project_location(project, lat, lng, accuracy)
    entry = add_location_log(
        db,
        employee_id=employee_id,
        project=project,
        lat=lat,
        lng=lng,
        accuracy=accuracy,
        result=result,
        log_type=LOG_TYPE_PING,
        at=clock.now(),
    )
    db.commit()
    db.refresh(entry)
    if not result.compliant:
        logger.warning(
            "Worker outside geofence: employee_id=%s project_id=%s distance=%.1fm allowed=%.1fm",
            employee_id, project_id, result.distance, result.allowed_distance,
        )
    return entry
