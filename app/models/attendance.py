"""
Attendance record (one per worker, work date and project) and its immutable event log.
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, Boolean, Float, JSON, Index, UniqueConstraint, Enum as SQLEnum, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class SessionState(str, enum.Enum):
    NOT_LOGGED_IN = "NOT_LOGGED_IN"
    CHECKED_IN = "CHECKED_IN"
    ON_LUNCH = "ON_LUNCH"
    CHECKED_OUT = "CHECKED_OUT"


class AttendanceEventType(str, enum.Enum):
    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    LUNCH_START = "LUNCH_START"
    LUNCH_END = "LUNCH_END"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    work_date = Column(Date, nullable=False, index=True)  # calendar date in WORK_TIMEZONE
    check_in_at = Column(DateTime(timezone=True), nullable=True)
    check_out_at = Column(DateTime(timezone=True), nullable=True)
    lunch_start_at = Column(DateTime(timezone=True), nullable=True)
    lunch_end_at = Column(DateTime(timezone=True), nullable=True)
    check_in_geo = Column(JSON, nullable=True)
    check_out_geo = Column(JSON, nullable=True)
    inside_geofence_at_checkin = Column(Boolean, nullable=True)
    inside_geofence_at_checkout = Column(Boolean, nullable=True)
    check_in_distance_m = Column(Float, nullable=True)
    check_out_distance_m = Column(Float, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", "project_id", name="uq_attendance_employee_date_project"),
        # At most one open session per worker and day, across projects
        Index(
            "uq_attendance_one_open_per_day",
            "employee_id",
            "work_date",
            unique=True,
            postgresql_where=text("check_out_at IS NULL"),
            sqlite_where=text("check_out_at IS NULL"),
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    employee = relationship("Employee")
    project = relationship("Project")
    events = relationship("AttendanceEvent", back_populates="record", order_by="AttendanceEvent.event_at")

    @property
    def session_state(self) -> SessionState:
        """State is derived from the timestamps, never stored."""
        if self.check_in_at is None:
            return SessionState.NOT_LOGGED_IN
        if self.check_out_at is not None:
            return SessionState.CHECKED_OUT
        if self.lunch_start_at is not None and self.lunch_end_at is None:
            return SessionState.ON_LUNCH
        return SessionState.CHECKED_IN


class AttendanceEvent(Base):
    __tablename__ = "attendance_events"

    id = Column(Integer, primary_key=True, index=True)
    record_id = Column(Integer, ForeignKey("attendance_records.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    event_type = Column(SQLEnum(AttendanceEventType), nullable=False)
    event_at = Column(DateTime(timezone=True), nullable=False)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    record = relationship("AttendanceRecord", back_populates="events")
