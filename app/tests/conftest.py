"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time; tests never touch a real database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-site-workforce-engine")
os.environ.setdefault("APP_ENV", "local")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.core.deps import get_clock, get_db
from app.core.security import hash_password
from app.models import Employee, Project, Role, WorkerTaskAssignment, TaskStatus
from app.utils.datetime_utils import FixedClock


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 09:00 in Asia/Kolkata on 2026-10-19
DEFAULT_NOW = datetime(2026, 10, 19, 3, 30, tzinfo=timezone.utc)

SITE_LAT = 12.9716
SITE_LNG = 77.5946
PASSWORD = "testpass123"


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    """Clock pinned to DEFAULT_NOW; tests move it with clock.advance(...)."""
    return FixedClock(DEFAULT_NOW)


@pytest.fixture(scope="function")
def client(db, clock):
    """Test client fixture with database and clock overrides"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_employee(db, emp_code: str, role: Role = Role.WORKER, active: bool = True) -> Employee:
    employee = Employee(
        emp_code=emp_code,
        name=f"Test {emp_code}",
        role=role.value,
        password_hash=hash_password(PASSWORD),
        active=active,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@pytest.fixture
def worker(db):
    return _make_employee(db, "WRK001")


@pytest.fixture
def other_worker(db):
    return _make_employee(db, "WRK002")


@pytest.fixture
def supervisor(db):
    return _make_employee(db, "SUP001", Role.SUPERVISOR)


@pytest.fixture
def admin(db):
    return _make_employee(db, "ADM001", Role.ADMIN)


@pytest.fixture
def project(db):
    """Project at SITE_LAT/SITE_LNG with radius 100m and tolerance 20m"""
    project = Project(
        code="SITE-A",
        name="Site A",
        geofence_lat=SITE_LAT,
        geofence_lng=SITE_LNG,
        geofence_radius_m=100.0,
        geofence_tolerance_m=20.0,
        required_accuracy_m=50.0,
        active=True,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@pytest.fixture
def make_assignment(db):
    """Factory for assignments on a given work date"""
    def _make(worker, project, work_date, task_code, sequence=1, dependencies=None, status=TaskStatus.QUEUED):
        assignment = WorkerTaskAssignment(
            task_code=task_code,
            task_name=f"Task {task_code}",
            employee_id=worker.id,
            project_id=project.id,
            work_date=work_date,
            sequence=sequence,
            dependencies=list(dependencies or []),
            status=status,
            progress_quantity=0.0,
            progress_percent=0.0,
        )
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment
    return _make


@pytest.fixture
def login(client):
    """Log in and return the bearer header"""
    def _login(emp_code: str, password: str = PASSWORD) -> dict:
        response = client.post(
            "/api/v1/auth/login",
            json={"emp_code": emp_code, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
