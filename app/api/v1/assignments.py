"""
Assignment endpoints (supervisor/admin)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_clock, get_db, require_roles
from app.models.employee import Employee, Role
from app.schemas.task import AssignmentCreate, AssignmentDto
from app.services.assignment_service import create_assignment
from app.services.task_execution_service import get_assignment
from app.utils.datetime_utils import Clock

router = APIRouter()


@router.post("", response_model=AssignmentDto, status_code=201)
async def create_assignment_endpoint(
    body: AssignmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(require_roles(Role.SUPERVISOR, Role.ADMIN)),
):
    """Assign a task to a worker for a work date (defaults to today)."""
    assignment = create_assignment(db, clock, body, current_user.id)
    return AssignmentDto.from_view(get_assignment(db, clock, assignment.id))
