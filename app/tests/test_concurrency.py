"""
Tests for the unit-of-work helper and the conflict guards beneath it
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import ConflictRetryExceeded, NotClockedIn
from app.models.attendance import AttendanceRecord
from app.models.project import Project
from app.models.task_assignment import TaskStatus, WorkerTaskAssignment
from app.services import attendance_session_service as sessions
from app.utils import concurrency
from app.utils.concurrency import run_unit_of_work

WORK_DATE = date(2026, 10, 19)


def test_conflict_is_retried_once(db, worker):
    calls = []

    def work():
        calls.append(1)
        if len(calls) == 1:
            raise StaleDataError("row changed underneath")
        return "done"

    assert run_unit_of_work(db, worker.id, WORK_DATE, work) == "done"
    assert len(calls) == 2


def test_second_conflict_raises(db, worker):
    calls = []

    def work():
        calls.append(1)
        raise IntegrityError("INSERT INTO attendance_records", {}, Exception("duplicate"))

    with pytest.raises(ConflictRetryExceeded) as exc_info:
        run_unit_of_work(db, worker.id, WORK_DATE, work)
    assert len(calls) == 2
    assert exc_info.value.status_code == 409
    assert exc_info.value.detail["code"] == "ConflictRetryExceeded"


def test_domain_error_is_not_retried(db, worker):
    calls = []

    def work():
        calls.append(1)
        raise NotClockedIn()

    with pytest.raises(NotClockedIn):
        run_unit_of_work(db, worker.id, WORK_DATE, work)
    assert len(calls) == 1


def test_stale_assignment_version_is_detected(db, worker, project, make_assignment):
    assignment = make_assignment(worker, project, WORK_DATE, "A")
    version = assignment.version

    # Another process bumps the row behind this session's back
    db.execute(
        text("UPDATE worker_task_assignments SET version = version + 1 WHERE id = :id"),
        {"id": assignment.id},
    )

    assignment.status = TaskStatus.PAUSED
    with pytest.raises(StaleDataError):
        db.flush()
    db.rollback()

    fresh = db.get(WorkerTaskAssignment, assignment.id)
    assert fresh.version == version
    assert fresh.status == TaskStatus.QUEUED


def test_lock_registry_drops_entries_after_use(db, worker):
    for offset in range(30):
        run_unit_of_work(db, worker.id, WORK_DATE + timedelta(days=offset), lambda: None)
    assert concurrency._locks == {}


def test_month_of_attendance_leaves_no_locks_behind(db, clock, worker, project):
    for _ in range(30):
        sessions.clock_in(db, clock, worker.id, project.id, project.geofence_lat, project.geofence_lng)
        clock.advance(hours=8)
        sessions.clock_out(db, clock, worker.id, project.id, project.geofence_lat, project.geofence_lng)
        clock.advance(hours=16)
    assert db.query(AttendanceRecord).count() == 30
    assert concurrency._locks == {}


def test_lock_entry_lives_while_held(worker):
    key = (worker.id, WORK_DATE)
    with concurrency.worker_day_lock(worker.id, WORK_DATE):
        assert concurrency._locks[key][1] == 1
        # Reentrant from the same thread
        with concurrency.worker_day_lock(worker.id, WORK_DATE):
            assert concurrency._locks[key][1] == 2
        assert concurrency._locks[key][1] == 1
    assert key not in concurrency._locks


def test_lock_entry_released_when_work_raises(db, worker):
    def work():
        raise NotClockedIn()

    with pytest.raises(NotClockedIn):
        run_unit_of_work(db, worker.id, WORK_DATE, work)
    assert (worker.id, WORK_DATE) not in concurrency._locks


def test_database_rejects_second_running_task(db, worker, project, make_assignment):
    make_assignment(worker, project, WORK_DATE, "A", status=TaskStatus.IN_PROGRESS)
    with pytest.raises(IntegrityError):
        make_assignment(worker, project, WORK_DATE, "B", status=TaskStatus.IN_PROGRESS)
    db.rollback()

    # Other statuses and other workers are unaffected
    make_assignment(worker, project, WORK_DATE, "C", status=TaskStatus.PAUSED)
    running = db.query(WorkerTaskAssignment).filter(WorkerTaskAssignment.status == TaskStatus.IN_PROGRESS).count()
    assert running == 1


def test_running_task_limit_is_per_worker(db, worker, other_worker, project, make_assignment):
    make_assignment(worker, project, WORK_DATE, "A", status=TaskStatus.IN_PROGRESS)
    make_assignment(other_worker, project, WORK_DATE, "A", status=TaskStatus.IN_PROGRESS)
    assert db.query(WorkerTaskAssignment).filter(WorkerTaskAssignment.status == TaskStatus.IN_PROGRESS).count() == 2


def _second_project(db):
    site_b = Project(
        code="SITE-B",
        name="Site B",
        geofence_lat=12.0,
        geofence_lng=77.0,
        geofence_radius_m=100.0,
        geofence_tolerance_m=20.0,
        required_accuracy_m=50.0,
        active=True,
    )
    db.add(site_b)
    db.commit()
    return site_b


def test_database_rejects_second_open_session(db, worker, project):
    site_b = _second_project(db)
    checked_in = datetime(2026, 10, 19, 3, 30, tzinfo=timezone.utc)
    db.add(AttendanceRecord(employee_id=worker.id, project_id=project.id, work_date=WORK_DATE, check_in_at=checked_in))
    db.commit()

    db.add(AttendanceRecord(employee_id=worker.id, project_id=site_b.id, work_date=WORK_DATE, check_in_at=checked_in))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_closed_sessions_do_not_block_an_open_one(db, worker, project):
    site_b = _second_project(db)
    checked_in = datetime(2026, 10, 19, 3, 30, tzinfo=timezone.utc)
    db.add(AttendanceRecord(
        employee_id=worker.id, project_id=project.id, work_date=WORK_DATE,
        check_in_at=checked_in, check_out_at=checked_in + timedelta(hours=4),
    ))
    db.add(AttendanceRecord(employee_id=worker.id, project_id=site_b.id, work_date=WORK_DATE, check_in_at=checked_in))
    db.commit()

    # The same worker on another day is a separate session
    db.add(AttendanceRecord(
        employee_id=worker.id, project_id=project.id, work_date=WORK_DATE + timedelta(days=1), check_in_at=checked_in,
    ))
    db.commit()
    assert db.query(AttendanceRecord).filter(AttendanceRecord.check_out_at.is_(None)).count() == 2
