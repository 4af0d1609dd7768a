"""
Project endpoints (geofence registry)
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_clock, get_current_user, get_db, require_roles
from app.models.employee import Employee, Role
from app.schemas.project import ProjectCreate, ProjectDto
from app.services.project_service import create_project, get_project, list_projects
from app.utils.datetime_utils import Clock

router = APIRouter()


@router.post("", response_model=ProjectDto, status_code=201)
async def create_project_endpoint(
    body: ProjectCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(require_roles(Role.SUPERVISOR, Role.ADMIN)),
):
    """Register a project and its geofence (supervisor/admin)."""
    return ProjectDto.from_project(create_project(db, clock, body, current_user.id))


@router.get("", response_model=List[ProjectDto])
async def list_projects_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return [ProjectDto.from_project(p) for p in list_projects(db)]


@router.get("/{project_id}", response_model=ProjectDto)
async def get_project_endpoint(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Project with the geofence clients pre-validate against."""
    return ProjectDto.from_project(get_project(db, project_id))
