"""
Worker task assignment (one task instance for one worker and work date) and its event log.
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Float, JSON, Index, Enum as SQLEnum, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class TaskStatus(str, enum.Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"


class TaskEventType(str, enum.Enum):
    START = "START"
    RESUME = "RESUME"
    PAUSE = "PAUSE"
    AUTO_PAUSE = "AUTO_PAUSE"
    COMPLETE = "COMPLETE"
    PROGRESS = "PROGRESS"


class WorkerTaskAssignment(Base):
    __tablename__ = "worker_task_assignments"

    id = Column(Integer, primary_key=True, index=True)
    task_code = Column(String, nullable=False)
    task_name = Column(String, nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    supervisor_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    work_date = Column(Date, nullable=False, index=True)
    sequence = Column(Integer, nullable=False, default=1)
    dependencies = Column(JSON, nullable=False, default=list)  # ids of assignments that must be completed first
    status = Column(SQLEnum(TaskStatus, values_callable=lambda e: [m.value for m in e]), nullable=False, default=TaskStatus.QUEUED, index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    last_resumed_at = Column(DateTime(timezone=True), nullable=True)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    daily_target_quantity = Column(Float, nullable=True)
    daily_target_unit = Column(String, nullable=True)
    progress_quantity = Column(Float, nullable=False, default=0.0)
    progress_percent = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        # At most one running task per worker
        Index(
            "uq_task_one_in_progress_per_employee",
            "employee_id",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
            sqlite_where=text("status = 'in_progress'"),
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    employee = relationship("Employee", foreign_keys=[employee_id])
    supervisor = relationship("Employee", foreign_keys=[supervisor_id])
    project = relationship("Project")
    events = relationship("TaskEvent", back_populates="assignment", order_by="TaskEvent.id")

    @property
    def dependency_ids(self):
        return [int(d) for d in (self.dependencies or [])]


class TaskEvent(Base):
    __tablename__ = "task_events"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("worker_task_assignments.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    event_type = Column(SQLEnum(TaskEventType), nullable=False)
    event_at = Column(DateTime(timezone=True), nullable=False)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    assignment = relationship("WorkerTaskAssignment", back_populates="events")
