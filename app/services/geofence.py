"""
Geofence validation: haversine distance and the single compliance predicate.

Attendance, task start, location logging and the client pre-check endpoint all
go through validate_project_location(), so every caller measures against the
same stored project geofence with the same formula.
"""
import math
from dataclasses import dataclass
from typing import Optional

from app.core.constants import EARTH_RADIUS_M
from app.core.exceptions import GpsInaccurate, LocationUnavailable
from app.models.project import Project


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class GeofenceResult:
    compliant: bool
    distance: float
    allowed_distance: float
    inside_radius: bool

    def as_dict(self) -> dict:
        return {
            "compliant": self.compliant,
            "distance": round(self.distance, 2),
            "allowedDistance": round(self.allowed_distance, 2),
            "insideRadius": self.inside_radius,
        }


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two lat/lng pairs."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within(current: Coordinate, center: Coordinate, radius: float) -> bool:
    return distance(current, center) <= radius


def validate(current: Coordinate, center: Coordinate, radius: float, tolerance: float) -> GeofenceResult:
    """
    Compliant iff distance <= radius + tolerance (inclusive).

    Raises:
        ValueError: radius is not positive or tolerance is negative
    """
    if radius <= 0:
        raise ValueError("Geofence radius must be greater than 0")
    if tolerance < 0:
        raise ValueError("Geofence tolerance must not be negative")
    meters = distance(current, center)
    allowed = radius + tolerance
    return GeofenceResult(
        compliant=meters <= allowed,
        distance=meters,
        allowed_distance=allowed,
        inside_radius=meters <= radius,
    )


def check_accuracy(accuracy: Optional[float], required_accuracy: float) -> None:
    """Reject a fix whose reported accuracy radius is larger than required."""
    if accuracy is not None and accuracy > required_accuracy:
        raise GpsInaccurate(accuracy=accuracy, required_accuracy=required_accuracy)


def project_center(project: Project) -> Coordinate:
    return Coordinate(lat=project.geofence_lat, lng=project.geofence_lng)


def validate_project_location(
    project: Project,
    lat: Optional[float],
    lng: Optional[float],
    accuracy: Optional[float] = None,
) -> GeofenceResult:
    """
    Validate a worker's reported position against a project's geofence.

    Order: missing coordinates (LocationUnavailable), then accuracy
    (GpsInaccurate), then distance. Callers decide whether a non-compliant
    result blocks the request.
    """
    if lat is None or lng is None:
        raise LocationUnavailable()
    check_accuracy(accuracy, project.required_accuracy_m)
    return validate(
        Coordinate(lat=lat, lng=lng),
        project_center(project),
        project.geofence_radius_m,
        project.geofence_tolerance_m,
    )
