"""
Tests for geofence validation (haversine distance and compliance)
"""
import math
import pytest
from app.core.constants import EARTH_RADIUS_M
from app.core.exceptions import GpsInaccurate, LocationUnavailable
from app.models.project import Project
from app.services.geofence import (
    Coordinate,
    distance,
    is_within,
    validate,
    validate_project_location,
)

CENTER = Coordinate(lat=12.9716, lng=77.5946)


def north_of(center: Coordinate, meters: float) -> Coordinate:
    """Point `meters` due north; along a meridian haversine is exactly R * dlat."""
    return Coordinate(lat=center.lat + math.degrees(meters / EARTH_RADIUS_M), lng=center.lng)


def _project(radius=100.0, tolerance=20.0, accuracy=50.0) -> Project:
    return Project(
        id=1,
        code="P1",
        name="P1",
        geofence_lat=CENTER.lat,
        geofence_lng=CENTER.lng,
        geofence_radius_m=radius,
        geofence_tolerance_m=tolerance,
        required_accuracy_m=accuracy,
    )


@pytest.mark.parametrize("a,b", [
    (Coordinate(12.9716, 77.5946), Coordinate(12.9816, 77.6046)),
    (Coordinate(-33.8688, 151.2093), Coordinate(51.5074, -0.1278)),
    (Coordinate(0.0, 179.9), Coordinate(0.0, -179.9)),
])
def test_distance_is_symmetric(a, b):
    assert distance(a, b) == pytest.approx(distance(b, a))


def test_distance_to_self_is_zero():
    assert distance(CENTER, CENTER) == 0


def test_distance_known_value():
    """One degree of latitude is about 111.2 km on a 6,371 km sphere"""
    d = distance(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))
    assert d == pytest.approx(EARTH_RADIUS_M * math.pi / 180)
    assert 111_000 < d < 111_300


def test_distance_antipodal_points():
    d = distance(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0))
    assert d == pytest.approx(math.pi * EARTH_RADIUS_M)


def test_is_within_radius():
    assert is_within(north_of(CENTER, 50), CENTER, 100)
    assert not is_within(north_of(CENTER, 150), CENTER, 100)


def test_validate_at_center_is_compliant():
    result = validate(CENTER, CENTER, radius=100, tolerance=20)
    assert result.compliant is True
    assert result.distance == 0
    assert result.allowed_distance == 120
    assert result.inside_radius is True


def test_validate_tolerance_is_additive():
    """110m is outside the 100m radius but inside radius + 20m tolerance"""
    result = validate(north_of(CENTER, 110), CENTER, radius=100, tolerance=20)
    assert result.compliant is True
    assert result.inside_radius is False


def test_validate_outside_radius_plus_tolerance():
    result = validate(north_of(CENTER, 150), CENTER, radius=100, tolerance=20)
    assert result.compliant is False
    assert result.distance == pytest.approx(150, abs=0.01)
    assert result.allowed_distance == 120


def test_validate_boundary_is_inclusive():
    point = north_of(CENTER, 120)
    d = distance(point, CENTER)
    # Halves of a float add back up exactly
    result = validate(point, CENTER, radius=d / 2, tolerance=d / 2)
    assert result.distance == result.allowed_distance
    assert result.compliant is True


@pytest.mark.parametrize("radius,tolerance", [(0, 10), (-5, 10), (100, -1)])
def test_validate_rejects_bad_geofence(radius, tolerance):
    with pytest.raises(ValueError):
        validate(CENTER, CENTER, radius=radius, tolerance=tolerance)


def test_as_dict_uses_client_keys():
    data = validate(north_of(CENTER, 150), CENTER, radius=100, tolerance=20).as_dict()
    assert data["compliant"] is False
    assert data["distance"] == pytest.approx(150, abs=0.01)
    assert data["allowedDistance"] == 120


def test_project_location_requires_coordinates():
    with pytest.raises(LocationUnavailable):
        validate_project_location(_project(), None, CENTER.lng)
    with pytest.raises(LocationUnavailable):
        validate_project_location(_project(), CENTER.lat, None)


def test_project_location_rejects_inaccurate_fix_before_distance():
    """Accuracy is checked first, even for a point far outside the fence"""
    far = north_of(CENTER, 5000)
    with pytest.raises(GpsInaccurate) as exc_info:
        validate_project_location(_project(accuracy=50), far.lat, far.lng, accuracy=80)
    assert exc_info.value.detail["code"] == "GpsInaccurate"
    assert exc_info.value.detail["requiredAccuracy"] == 50


def test_project_location_accepts_accuracy_at_limit():
    result = validate_project_location(_project(accuracy=50), CENTER.lat, CENTER.lng, accuracy=50)
    assert result.compliant is True


def test_project_location_uses_stored_geofence():
    point = north_of(CENTER, 150)
    result = validate_project_location(_project(radius=200, tolerance=0), point.lat, point.lng)
    assert result.compliant is True
    assert result.allowed_distance == 200
