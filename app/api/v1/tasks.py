"""
Worker task endpoints: start / pause / complete / progress, today's list and history.
Workers act on their own assignments only; another worker's assignment is a 404.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_clock, get_current_user, get_db, is_supervisor, resolve_worker_scope
from app.models.employee import Employee
from app.models.task_assignment import TaskStatus
from app.schemas.task import (
    AssignmentDto,
    TaskActionResponse,
    TaskCompleteRequest,
    TaskHistoryResponse,
    TaskPauseRequest,
    TaskProgressRequest,
    TaskStartRequest,
)
from app.services import task_execution_service as tasks
from app.utils.datetime_utils import Clock

router = APIRouter()


def _action_response(view) -> TaskActionResponse:
    return TaskActionResponse(status=view.assignment.status, assignment=AssignmentDto.from_view(view))


@router.post("/task/{assignment_id}/start", response_model=TaskActionResponse)
def start_task_endpoint(
    assignment_id: int,
    body: Optional[TaskStartRequest] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """
    Start or resume a task. Requires an open check-in on the task's project,
    a position inside its geofence and completed dependencies. Any other
    running task of the worker is auto-paused.
    """
    payload = body or TaskStartRequest()
    view = tasks.start_task(db, clock, assignment_id, current_user.id, payload.lat, payload.lon, payload.accuracy)
    return _action_response(view)


@router.post("/task/{assignment_id}/pause", response_model=TaskActionResponse)
def pause_task_endpoint(
    assignment_id: int,
    body: Optional[TaskPauseRequest] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    payload = body or TaskPauseRequest()
    view = tasks.pause_task(db, clock, assignment_id, current_user.id, payload.lat, payload.lon)
    return _action_response(view)


@router.post("/task/{assignment_id}/complete", response_model=TaskActionResponse)
def complete_task_endpoint(
    assignment_id: int,
    body: Optional[TaskCompleteRequest] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    payload = body or TaskCompleteRequest()
    view = tasks.complete_task(
        db, clock, assignment_id, current_user.id, payload.progress_quantity, payload.progress_percent,
    )
    return _action_response(view)


@router.post("/task/{assignment_id}/progress", response_model=TaskActionResponse)
def progress_task_endpoint(
    assignment_id: int,
    body: TaskProgressRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    view = tasks.update_progress(
        db, clock, assignment_id, current_user.id, body.progress_quantity, body.progress_percent,
    )
    return _action_response(view)


@router.get("/task/{assignment_id}", response_model=AssignmentDto)
async def get_task_endpoint(
    assignment_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    owner = None if is_supervisor(current_user) else current_user.id
    return AssignmentDto.from_view(tasks.get_assignment(db, clock, assignment_id, owner))


@router.get("/tasks/today", response_model=List[AssignmentDto])
async def tasks_today_endpoint(
    worker_id: Optional[int] = Query(None, alias="workerId"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """
    Today's assignments by sequence, with the project geofence, canStart and
    unmet dependencies. Supervisors and admins may pass another workerId.
    """
    target = resolve_worker_scope(worker_id, current_user)
    return [AssignmentDto.from_view(v) for v in tasks.list_today(db, clock, target)]


@router.get("/tasks/history", response_model=TaskHistoryResponse)
async def tasks_history_endpoint(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    worker_id: Optional[int] = Query(None, alias="workerId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, description="Capped at 100"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: Employee = Depends(get_current_user),
):
    """
    Past and current assignments, newest work date first, with pagination and
    a summary over everything matching the filters. Workers see their own;
    supervisors and admins may pass workerId.
    """
    target = resolve_worker_scope(worker_id, current_user)
    result = tasks.list_history(
        db, clock, target, from_date, to_date, task_status, project_id, page=page, limit=limit,
    )
    return TaskHistoryResponse.from_page(result)
