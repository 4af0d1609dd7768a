"""
Project model with its geofence (center, radius, allowed variance, required GPS accuracy)
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    geofence_lat = Column(Float, nullable=False)
    geofence_lng = Column(Float, nullable=False)
    geofence_radius_m = Column(Float, nullable=False)
    geofence_tolerance_m = Column(Float, nullable=False, default=0.0)
    required_accuracy_m = Column(Float, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        CheckConstraint("geofence_radius_m > 0", name="ck_projects_radius_positive"),
        CheckConstraint("geofence_tolerance_m >= 0", name="ck_projects_tolerance_non_negative"),
        CheckConstraint("required_accuracy_m > 0", name="ck_projects_accuracy_positive"),
    )

    @property
    def allowed_distance_m(self) -> float:
        """Radius plus variance: the farthest compliant distance from the center."""
        return self.geofence_radius_m + self.geofence_tolerance_m
