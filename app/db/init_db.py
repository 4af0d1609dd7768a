"""
Database bootstrap helpers: the initial admin account (run on startup) and a
small demo site with one supervisor, one worker, one project geofence and a
chain of three dependent tasks for a work date (run by hand).
"""
import logging
from datetime import date
from typing import Dict, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.security import hash_password
from app.models.employee import Employee, Role
from app.models.project import Project
from app.models.task_assignment import TaskStatus, WorkerTaskAssignment

logger = logging.getLogger(__name__)

DEMO_PROJECT_CODE = "DEMO-SITE"
DEMO_TASKS = (
    ("EXC-01", "Excavation", 12.0, "m3"),
    ("FRM-01", "Formwork", 20.0, "m2"),
    ("CON-01", "Concrete pour", 8.0, "m3"),
)


def _get_or_create_employee(db: Session, emp_code: str, name: str, role: Role, password: str) -> Employee:
    employee = db.query(Employee).filter(Employee.emp_code == emp_code).first()
    if employee:
        return employee
    employee = Employee(
        emp_code=emp_code,
        name=name,
        role=role.value,
        password_hash=hash_password(password),
        active=True,
    )
    db.add(employee)
    db.flush()
    return employee


def init_db(db: Session, work_date: date, password: str = "Demo@12345") -> Dict[str, int]:
    """
    Seed demo data for work_date. Idempotent: existing rows are reused and the
    task chain is only created when the worker has no assignments that day.

    This is a helper function and should NOT be auto-run on startup.
    Call manually when needed (scripts/seed_demo.py).
    """
    supervisor = _get_or_create_employee(db, "SUP-001", "Site Supervisor", Role.SUPERVISOR, password)
    worker = _get_or_create_employee(db, "WRK-001", "Site Worker", Role.WORKER, password)

    project = db.query(Project).filter(Project.code == DEMO_PROJECT_CODE).first()
    if not project:
        project = Project(
            code=DEMO_PROJECT_CODE,
            name="Demo construction site",
            geofence_lat=12.9716,
            geofence_lng=77.5946,
            geofence_radius_m=100.0,
            geofence_tolerance_m=settings.DEFAULT_GEOFENCE_TOLERANCE_M,
            required_accuracy_m=settings.DEFAULT_REQUIRED_ACCURACY_M,
            active=True,
        )
        db.add(project)
        db.flush()

    existing = db.query(WorkerTaskAssignment).filter(
        WorkerTaskAssignment.employee_id == worker.id,
        WorkerTaskAssignment.work_date == work_date,
    ).count()
    if not existing:
        previous_id = None
        for sequence, (code, name, quantity, unit) in enumerate(DEMO_TASKS, start=1):
            assignment = WorkerTaskAssignment(
                task_code=code,
                task_name=name,
                employee_id=worker.id,
                project_id=project.id,
                supervisor_id=supervisor.id,
                work_date=work_date,
                sequence=sequence,
                dependencies=[previous_id] if previous_id else [],
                status=TaskStatus.QUEUED,
                daily_target_quantity=quantity,
                daily_target_unit=unit,
                progress_quantity=0.0,
                progress_percent=0.0,
            )
            db.add(assignment)
            db.flush()
            previous_id = assignment.id

    db.commit()
    logger.info("Demo data ready: project=%s worker=%s work_date=%s", project.code, worker.emp_code, work_date)
    return {"project_id": project.id, "supervisor_id": supervisor.id, "worker_id": worker.id}


def ensure_initial_admin(db: Session) -> Optional[Employee]:
    """
    Create the INITIAL_ADMIN_* employee when no admin exists yet, so projects
    and assignments can be set up on a fresh database. Returns the new admin,
    or None when one was already there.
    """
    existing = db.query(Employee).filter(
        (Employee.emp_code == settings.INITIAL_ADMIN_EMP_CODE) | (Employee.role == Role.ADMIN.value)
    ).first()
    if existing:
        logger.info("Admin user already exists, skipping initial bootstrap")
        return None

    admin = Employee(
        emp_code=settings.INITIAL_ADMIN_EMP_CODE,
        name="System Administrator",
        role=Role.ADMIN.value,
        password_hash=hash_password(settings.INITIAL_ADMIN_PASSWORD),
        active=True,
    )
    db.add(admin)
    db.commit()
    logger.info("Initial admin user created: emp_code=%s (password from INITIAL_ADMIN_PASSWORD)", admin.emp_code)
    return admin
