"""
Database models
"""
from app.models.employee import Employee, Role
from app.models.project import Project
from app.models.audit_log import AuditLog
from app.models.attendance import (
    AttendanceRecord,
    AttendanceEvent,
    AttendanceEventType,
    SessionState,
)
from app.models.task_assignment import (
    WorkerTaskAssignment,
    TaskEvent,
    TaskEventType,
    TaskStatus,
)
from app.models.location_log import LocationLog

__all__ = [
    "Employee",
    "Role",
    "Project",
    "AuditLog",
    "AttendanceRecord",
    "AttendanceEvent",
    "AttendanceEventType",
    "SessionState",
    "WorkerTaskAssignment",
    "TaskEvent",
    "TaskEventType",
    "TaskStatus",
    "LocationLog",
]
