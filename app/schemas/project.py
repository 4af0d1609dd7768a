"""
Project and geofence schemas
"""
from typing import Optional
from pydantic import Field

from app.schemas.common import CamelModel, CamelRequest


class ProjectCreate(CamelRequest):
    """Register a project and its geofence."""
    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    lat: float = Field(..., ge=-90, le=90, description="Geofence center latitude")
    lon: float = Field(..., ge=-180, le=180, description="Geofence center longitude")
    radius_m: float = Field(..., gt=0, description="Geofence radius in meters")
    tolerance_m: Optional[float] = Field(None, ge=0, description="Allowed variance in meters")
    required_accuracy_m: Optional[float] = Field(None, gt=0, description="Worst accepted GPS accuracy in meters")


class ProjectGeofenceDto(CamelModel):
    """The reference geofence clients must pre-validate against."""
    project_id: int
    center_lat: float
    center_lon: float
    radius_m: float
    tolerance_m: float
    allowed_distance_m: float
    required_accuracy_m: float

    @classmethod
    def from_project(cls, project) -> "ProjectGeofenceDto":
        return cls(
            project_id=project.id,
            center_lat=project.geofence_lat,
            center_lon=project.geofence_lng,
            radius_m=project.geofence_radius_m,
            tolerance_m=project.geofence_tolerance_m,
            allowed_distance_m=project.allowed_distance_m,
            required_accuracy_m=project.required_accuracy_m,
        )


class ProjectDto(CamelModel):
    id: int
    code: str
    name: str
    active: bool
    geofence: ProjectGeofenceDto

    @classmethod
    def from_project(cls, project) -> "ProjectDto":
        return cls(
            id=project.id,
            code=project.code,
            name=project.name,
            active=project.active,
            geofence=ProjectGeofenceDto.from_project(project),
        )
