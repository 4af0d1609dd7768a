"""
Task execution service: start / pause / complete / progress for a worker's
assignments, the worker's task list for today, and paged task history.

A worker runs at most one task at a time: starting a task auto-pauses any
other in-progress assignment in the same transaction. Active time is derived
from the assignment's event log.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.core.constants import LOG_TYPE_TASK_START
from app.core.exceptions import (
    AssignmentNotFound,
    DependenciesNotMet,
    InvalidState,
    NotClockedIn,
    OutsideGeofence,
)
from app.models.attendance import SessionState
from app.models.task_assignment import TaskEvent, TaskEventType, TaskStatus, WorkerTaskAssignment
from app.services.attendance_session_service import session_state_for
from app.services.audit_service import log_audit
from app.services.dependency_resolver import STARTABLE_STATUSES, completed_ids, unmet_dependencies
from app.services.geofence import validate_project_location
from app.services.location_log_service import add_location_log
from app.services.project_service import get_project
from app.utils.concurrency import run_unit_of_work
from app.utils.datetime_utils import Clock, ensure_utc, seconds_between
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)

_SEGMENT_OPEN = (TaskEventType.START, TaskEventType.RESUME)
_SEGMENT_CLOSE = (TaskEventType.PAUSE, TaskEventType.AUTO_PAUSE, TaskEventType.COMPLETE)


@dataclass
class AssignmentView:
    assignment: WorkerTaskAssignment
    can_start: bool
    unmet_dependencies: List[int]
    active_seconds: int


def _add_event(db: Session, assignment: WorkerTaskAssignment, event_type: TaskEventType,
               at: datetime, meta: Optional[dict] = None) -> None:
    db.add(TaskEvent(
        assignment_id=assignment.id,
        employee_id=assignment.employee_id,
        event_type=event_type,
        event_at=at,
        meta_json=sanitize_for_json(meta) if meta else None,
    ))


def _load_assignment(db: Session, assignment_id: int, employee_id: Optional[int]) -> WorkerTaskAssignment:
    """Assignment by id; another worker's assignment is reported as not found."""
    assignment = db.query(WorkerTaskAssignment).filter(WorkerTaskAssignment.id == assignment_id).first()
    if assignment is None or (employee_id is not None and assignment.employee_id != employee_id):
        raise AssignmentNotFound(assignmentId=assignment_id)
    return assignment


def _day_assignments(db: Session, employee_id: int, work_date: date) -> List[WorkerTaskAssignment]:
    return (
        db.query(WorkerTaskAssignment)
        .options(selectinload(WorkerTaskAssignment.events), selectinload(WorkerTaskAssignment.project))
        .filter(WorkerTaskAssignment.employee_id == employee_id, WorkerTaskAssignment.work_date == work_date)
        .order_by(WorkerTaskAssignment.sequence.asc(), WorkerTaskAssignment.id.asc())
        .all()
    )


def _segment_seconds(events: Iterable[TaskEvent], running: bool, now: datetime) -> int:
    total = 0
    opened_at = None
    for event in sorted(events, key=lambda e: (ensure_utc(e.event_at), e.id)):
        if event.event_type in _SEGMENT_OPEN:
            if opened_at is None:
                opened_at = event.event_at
        elif event.event_type in _SEGMENT_CLOSE and opened_at is not None:
            total += seconds_between(opened_at, event.event_at)
            opened_at = None
    if opened_at is not None and running:
        total += seconds_between(opened_at, now)
    return total


def active_seconds(assignment: WorkerTaskAssignment, now: datetime) -> int:
    """Sum of START/RESUME -> PAUSE/AUTO_PAUSE/COMPLETE segments; an open segment runs to now."""
    return _segment_seconds(assignment.events, assignment.status == TaskStatus.IN_PROGRESS, now)


def _view(assignment: WorkerTaskAssignment, done: set, now: datetime) -> AssignmentView:
    unmet = unmet_dependencies(assignment, done)
    return AssignmentView(
        assignment=assignment,
        can_start=assignment.status in STARTABLE_STATUSES and not unmet,
        unmet_dependencies=unmet,
        active_seconds=active_seconds(assignment, now),
    )


def start_task(
    db: Session,
    clock: Clock,
    assignment_id: int,
    employee_id: int,
    lat: Optional[float],
    lng: Optional[float],
    accuracy: Optional[float] = None,
) -> AssignmentView:
    """
    Start or resume an assignment.

    Checks, in order: ownership, that the assignment is for today's work
    date, an open check-in on the assignment's project, location against the
    project geofence, completed dependencies, and that the assignment is
    queued or paused.
    """
    now = clock.now()
    _load_assignment(db, assignment_id, employee_id)

    def work() -> WorkerTaskAssignment:
        assignment = _load_assignment(db, assignment_id, employee_id)
        today = clock.work_date(now)
        if assignment.work_date != today:
            raise InvalidState(
                f"Task is assigned for {assignment.work_date.isoformat()}, not {today.isoformat()}",
                currentStatus=assignment.status.value,
                workDate=assignment.work_date.isoformat(),
            )
        state = session_state_for(db, clock, employee_id, assignment.project_id)
        if state != SessionState.CHECKED_IN:
            raise NotClockedIn(
                "Clock in on this project before starting a task",
                projectId=assignment.project_id,
                currentState=state.value,
            )

        project = get_project(db, assignment.project_id)
        result = validate_project_location(project, lat, lng, accuracy)
        if not result.compliant:
            raise OutsideGeofence(result.distance, result.allowed_distance)

        day = _day_assignments(db, employee_id, assignment.work_date)
        unmet = unmet_dependencies(assignment, completed_ids(day))
        if unmet:
            raise DependenciesNotMet(unmet)

        if assignment.status not in STARTABLE_STATUSES:
            raise InvalidState(
                f"Cannot start a task that is {assignment.status.value}",
                currentStatus=assignment.status.value,
            )

        running = (
            db.query(WorkerTaskAssignment)
            .filter(
                WorkerTaskAssignment.employee_id == employee_id,
                WorkerTaskAssignment.status == TaskStatus.IN_PROGRESS,
                WorkerTaskAssignment.id != assignment.id,
            )
            .all()
        )
        for other in running:
            other.status = TaskStatus.PAUSED
            other.paused_at = now
            _add_event(db, other, TaskEventType.AUTO_PAUSE, now, {"started_assignment_id": assignment.id})
            logger.info("Auto-paused assignment_id=%s for employee_id=%s", other.id, employee_id)
        # Pauses must reach the database before this row turns in_progress
        db.flush()

        event_type = TaskEventType.START if assignment.started_at is None else TaskEventType.RESUME
        if assignment.started_at is None:
            assignment.started_at = now
        assignment.status = TaskStatus.IN_PROGRESS
        assignment.last_resumed_at = now
        assignment.paused_at = None
        db.flush()

        _add_event(db, assignment, event_type, now, {"lat": lat, "lng": lng, "distance_m": round(result.distance, 2)})
        add_location_log(
            db, employee_id=employee_id, project=project, lat=lat, lng=lng, accuracy=accuracy,
            result=result, log_type=LOG_TYPE_TASK_START, at=now, task_assignment_id=assignment.id,
        )
        log_audit(
            db=db,
            at=now,
            actor_id=employee_id,
            action="TASK_START" if event_type == TaskEventType.START else "TASK_RESUME",
            entity=assignment,
            meta={"auto_paused": [o.id for o in running]},
        )
        return assignment

    run_unit_of_work(db, employee_id, clock.work_date(now), work)
    logger.info("start_task: assignment_id=%s employee_id=%s", assignment_id, employee_id)
    return get_assignment(db, clock, assignment_id, employee_id)


def pause_task(
    db: Session,
    clock: Clock,
    assignment_id: int,
    employee_id: int,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> AssignmentView:
    """Pause an in-progress assignment."""
    now = clock.now()
    _load_assignment(db, assignment_id, employee_id)

    def work() -> WorkerTaskAssignment:
        assignment = _load_assignment(db, assignment_id, employee_id)
        if assignment.status != TaskStatus.IN_PROGRESS:
            raise InvalidState(
                f"Cannot pause a task that is {assignment.status.value}",
                currentStatus=assignment.status.value,
            )
        assignment.status = TaskStatus.PAUSED
        assignment.paused_at = now
        db.flush()
        _add_event(db, assignment, TaskEventType.PAUSE, now, {"lat": lat, "lng": lng})
        log_audit(db=db, at=now, actor_id=employee_id, action="TASK_PAUSE",
                  entity=assignment)
        return assignment

    run_unit_of_work(db, employee_id, clock.work_date(now), work)
    logger.info("pause_task: assignment_id=%s employee_id=%s", assignment_id, employee_id)
    return get_assignment(db, clock, assignment_id, employee_id)


def complete_task(
    db: Session,
    clock: Clock,
    assignment_id: int,
    employee_id: int,
    progress_quantity: Optional[float] = None,
    progress_percent: Optional[float] = None,
) -> AssignmentView:
    """
    Complete an in-progress or paused assignment and store its final progress.
    Dependents are not started; they only become startable.
    """
    now = clock.now()
    _load_assignment(db, assignment_id, employee_id)

    def work() -> WorkerTaskAssignment:
        assignment = _load_assignment(db, assignment_id, employee_id)
        if assignment.status not in (TaskStatus.IN_PROGRESS, TaskStatus.PAUSED):
            raise InvalidState(
                f"Cannot complete a task that is {assignment.status.value}",
                currentStatus=assignment.status.value,
            )
        assignment.status = TaskStatus.COMPLETED
        assignment.completed_at = now
        if progress_quantity is not None:
            assignment.progress_quantity = progress_quantity
        assignment.progress_percent = progress_percent if progress_percent is not None else 100.0
        db.flush()
        _add_event(db, assignment, TaskEventType.COMPLETE, now, {
            "progress_quantity": assignment.progress_quantity,
            "progress_percent": assignment.progress_percent,
        })
        log_audit(db=db, at=now, actor_id=employee_id, action="TASK_COMPLETE",
                  entity=assignment,
                  meta={"progress_percent": assignment.progress_percent})
        return assignment

    run_unit_of_work(db, employee_id, clock.work_date(now), work)
    logger.info("complete_task: assignment_id=%s employee_id=%s", assignment_id, employee_id)
    return get_assignment(db, clock, assignment_id, employee_id)


def update_progress(
    db: Session,
    clock: Clock,
    assignment_id: int,
    employee_id: int,
    progress_quantity: Optional[float] = None,
    progress_percent: Optional[float] = None,
) -> AssignmentView:
    """Record progress on an in-progress or paused assignment."""
    if progress_quantity is not None and progress_quantity < 0:
        raise ValueError("progress_quantity must not be negative")
    if progress_percent is not None and not (0 <= progress_percent <= 100):
        raise ValueError("progress_percent must be between 0 and 100")
    now = clock.now()
    _load_assignment(db, assignment_id, employee_id)

    def work() -> WorkerTaskAssignment:
        assignment = _load_assignment(db, assignment_id, employee_id)
        if assignment.status not in (TaskStatus.IN_PROGRESS, TaskStatus.PAUSED):
            raise InvalidState(
                f"Cannot record progress on a task that is {assignment.status.value}",
                currentStatus=assignment.status.value,
            )
        if progress_quantity is not None:
            assignment.progress_quantity = progress_quantity
        if progress_percent is not None:
            assignment.progress_percent = progress_percent
        db.flush()
        _add_event(db, assignment, TaskEventType.PROGRESS, now, {
            "progress_quantity": progress_quantity,
            "progress_percent": progress_percent,
        })
        return assignment

    run_unit_of_work(db, employee_id, clock.work_date(now), work)
    return get_assignment(db, clock, assignment_id, employee_id)


def get_assignment(
    db: Session,
    clock: Clock,
    assignment_id: int,
    employee_id: Optional[int] = None,
) -> AssignmentView:
    """One assignment with its derived fields; employee_id=None skips the ownership check."""
    assignment = _load_assignment(db, assignment_id, employee_id)
    day = _day_assignments(db, assignment.employee_id, assignment.work_date)
    return _view(assignment, completed_ids(day), clock.now())


def list_today(db: Session, clock: Clock, employee_id: int) -> List[AssignmentView]:
    """The worker's assignments for today, by sequence."""
    now = clock.now()
    day = _day_assignments(db, employee_id, clock.work_date(now))
    done = completed_ids(day)
    return [_view(a, done, now) for a in day]


HISTORY_MAX_LIMIT = 100


@dataclass
class TaskHistoryPage:
    views: List[AssignmentView]
    total: int
    page: int
    limit: int
    total_completed: int
    total_in_progress: int
    completed_active_seconds: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def average_task_seconds(self) -> int:
        if not self.total_completed:
            return 0
        return round(self.completed_active_seconds / self.total_completed)


def list_history(
    db: Session,
    clock: Clock,
    employee_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    task_status: Optional[TaskStatus] = None,
    project_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> TaskHistoryPage:
    """
    A worker's assignments across days, newest work date first and by
    sequence within a day, one page at a time. limit is capped at
    HISTORY_MAX_LIMIT.

    The summary counts cover every assignment matching the filters, not just
    the page. Active time is summed over completed assignments only.
    """
    if from_date is not None and to_date is not None and from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from must be less than or equal to to",
        )
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")
    limit = min(limit, HISTORY_MAX_LIMIT)
    now = clock.now()

    query = db.query(WorkerTaskAssignment).filter(WorkerTaskAssignment.employee_id == employee_id)
    if from_date is not None:
        query = query.filter(WorkerTaskAssignment.work_date >= from_date)
    if to_date is not None:
        query = query.filter(WorkerTaskAssignment.work_date <= to_date)
    if task_status is not None:
        query = query.filter(WorkerTaskAssignment.status == task_status)
    if project_id is not None:
        query = query.filter(WorkerTaskAssignment.project_id == project_id)

    statuses: Dict[int, TaskStatus] = {
        row.id: row.status for row in query.with_entities(WorkerTaskAssignment.id, WorkerTaskAssignment.status)
    }
    completed = [i for i, s in statuses.items() if s == TaskStatus.COMPLETED]

    events_by_assignment: Dict[int, List[TaskEvent]] = {i: [] for i in completed}
    if completed:
        for event in db.query(TaskEvent).filter(TaskEvent.assignment_id.in_(completed)):
            events_by_assignment[event.assignment_id].append(event)
    completed_seconds = sum(_segment_seconds(events, False, now) for events in events_by_assignment.values())

    rows = (
        query.options(selectinload(WorkerTaskAssignment.events), selectinload(WorkerTaskAssignment.project))
        .order_by(
            WorkerTaskAssignment.work_date.desc(),
            WorkerTaskAssignment.sequence.asc(),
            WorkerTaskAssignment.id.asc(),
        )
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    # Dependencies never cross work dates, so one completed set covers the page
    done = set()
    dates = {a.work_date for a in rows}
    if dates:
        done = {
            row.id for row in db.query(WorkerTaskAssignment.id).filter(
                WorkerTaskAssignment.employee_id == employee_id,
                WorkerTaskAssignment.work_date.in_(dates),
                WorkerTaskAssignment.status == TaskStatus.COMPLETED,
            )
        }

    return TaskHistoryPage(
        views=[_view(a, done, now) for a in rows],
        total=len(statuses),
        page=page,
        limit=limit,
        total_completed=len(completed),
        total_in_progress=sum(1 for s in statuses.values() if s == TaskStatus.IN_PROGRESS),
        completed_active_seconds=completed_seconds,
    )
