"""
Assignment service: supervisors hand out task instances to workers for a work date
"""
import logging
from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.employee import Employee
from app.models.task_assignment import TaskStatus, WorkerTaskAssignment
from app.schemas.task import AssignmentCreate
from app.services.audit_service import log_audit
from app.services.project_service import get_project
from app.utils.datetime_utils import Clock

logger = logging.getLogger(__name__)


def create_assignment(db: Session, clock: Clock, data: AssignmentCreate, actor_id: int) -> WorkerTaskAssignment:
    """
    Create a queued assignment.

    Dependencies must be existing assignments of the same worker and work
    date; sequence defaults to one past the day's current maximum.
    """
    worker = db.query(Employee).filter(Employee.id == data.worker_id).first()
    if not worker or not worker.active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Worker {data.worker_id} not found",
        )
    project = get_project(db, data.project_id)
    now = clock.now()
    work_date = data.work_date or clock.work_date(now)

    dependencies = sorted(set(data.dependencies))
    if dependencies:
        found = {
            row.id for row in db.query(WorkerTaskAssignment.id).filter(
                WorkerTaskAssignment.id.in_(dependencies),
                WorkerTaskAssignment.employee_id == worker.id,
                WorkerTaskAssignment.work_date == work_date,
            )
        }
        missing = [d for d in dependencies if d not in found]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Dependencies must be assignments of the same worker and date: {missing}",
            )

    sequence = data.sequence
    if sequence is None:
        current_max = (
            db.query(func.max(WorkerTaskAssignment.sequence))
            .filter(WorkerTaskAssignment.employee_id == worker.id, WorkerTaskAssignment.work_date == work_date)
            .scalar()
        )
        sequence = (current_max or 0) + 1

    assignment = WorkerTaskAssignment(
        task_code=data.task_code,
        task_name=data.task_name,
        employee_id=worker.id,
        project_id=project.id,
        supervisor_id=actor_id,
        work_date=work_date,
        sequence=sequence,
        dependencies=dependencies,
        status=TaskStatus.QUEUED,
        daily_target_quantity=data.daily_target_quantity,
        daily_target_unit=data.daily_target_unit,
        progress_quantity=0.0,
        progress_percent=0.0,
    )
    db.add(assignment)
    db.flush()
    log_audit(
        db=db,
        at=now,
        actor_id=actor_id,
        action="ASSIGNMENT_CREATE",
        entity=assignment,
        meta={"worker_id": worker.id, "work_date": work_date, "dependencies": dependencies},
    )
    db.commit()
    db.refresh(assignment)
    logger.info("Assignment created: id=%s worker_id=%s work_date=%s sequence=%s",
                assignment.id, worker.id, work_date, sequence)
    return assignment
