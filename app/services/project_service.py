"""
Project registry: projects and their geofences (read-only for workers)
"""
import logging
from typing import List
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ProjectNotFound
from app.models.project import Project
from app.schemas.project import ProjectCreate
from app.services.audit_service import log_audit
from app.utils.datetime_utils import Clock

logger = logging.getLogger(__name__)


def get_project(db: Session, project_id: int) -> Project:
    """Active project by id, or ProjectNotFound."""
    project = db.query(Project).filter(Project.id == project_id, Project.active.is_(True)).first()
    if not project:
        raise ProjectNotFound(projectId=project_id)
    return project


def list_projects(db: Session) -> List[Project]:
    return db.query(Project).filter(Project.active.is_(True)).order_by(Project.code).all()


def create_project(db: Session, clock: Clock, data: ProjectCreate, actor_id: int) -> Project:
    """Create a project; tolerance and required accuracy fall back to settings."""
    if db.query(Project).filter(Project.code == data.code).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Project code '{data.code}' already exists",
        )

    project = Project(
        code=data.code,
        name=data.name,
        geofence_lat=data.lat,
        geofence_lng=data.lon,
        geofence_radius_m=data.radius_m,
        geofence_tolerance_m=(
            data.tolerance_m if data.tolerance_m is not None else settings.DEFAULT_GEOFENCE_TOLERANCE_M
        ),
        required_accuracy_m=(
            data.required_accuracy_m if data.required_accuracy_m is not None else settings.DEFAULT_REQUIRED_ACCURACY_M
        ),
        active=True,
    )
    db.add(project)
    db.flush()
    log_audit(
        db=db,
        at=clock.now(),
        actor_id=actor_id,
        action="PROJECT_CREATE",
        entity=project,
        meta={"code": project.code, "radius_m": project.geofence_radius_m},
    )
    db.commit()
    db.refresh(project)
    logger.info("Project created: id=%s code=%s", project.id, project.code)
    return project
