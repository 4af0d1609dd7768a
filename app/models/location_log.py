"""
Location log: append-only trail of validated positions and their geofence verdict
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Boolean
from sqlalchemy.sql import func
from app.db.base import Base


class LocationLog(Base):
    __tablename__ = "location_logs"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)
    distance_m = Column(Float, nullable=False)
    inside_geofence = Column(Boolean, nullable=False)
    log_type = Column(String, nullable=False)  # PING / CHECK_IN / CHECK_OUT / TASK_START
    task_assignment_id = Column(Integer, ForeignKey("worker_task_assignments.id"), nullable=True)
    logged_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
