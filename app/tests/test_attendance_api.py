"""
Tests for attendance endpoints
"""
import math
from fastapi import status
from app.core.constants import EARTH_RADIUS_M


def _body(project, meters=0.0, **extra):
    body = {
        "projectId": project.id,
        "lat": project.geofence_lat + math.degrees(meters / EARTH_RADIUS_M),
        "lon": project.geofence_lng,
    }
    body.update(extra)
    return body


def test_clock_in_success(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-in", json=_body(project, accuracy=8), headers=headers)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "CHECKED_IN"
    record = data["record"]
    assert record["employeeId"] == worker.id
    assert record["projectId"] == project.id
    assert record["workDate"] == "2026-10-19"
    assert record["checkInTime"] == "2026-10-19T09:00:00+05:30"
    assert record["checkOutTime"] is None
    assert record["insideGeofenceAtCheckin"] is True
    assert record["checkInGeo"]["accuracy"] == 8


def test_clock_in_accepts_snake_case(client, worker, project, login):
    headers = login("WRK001")
    body = {"project_id": project.id, "lat": project.geofence_lat, "lon": project.geofence_lng}
    response = client.post("/api/v1/attendance/clock-in", json=body, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED


def test_clock_in_outside_geofence(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-in", json=_body(project, meters=150), headers=headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    payload = response.json()
    assert payload["error"] is True
    assert payload["path"] == "/api/v1/attendance/clock-in"
    detail = payload["detail"]
    assert detail["code"] == "OutsideGeofence"
    assert abs(detail["distance"] - 150) < 0.01
    assert detail["allowedDistance"] == 120


def test_clock_in_twice(client, worker, project, login):
    headers = login("WRK001")
    assert client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers).status_code == 201
    response = client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["code"] == "AlreadyClockedIn"


def test_clock_in_missing_coordinates(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-in", json={"projectId": project.id}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["code"] == "LocationUnavailable"


def test_clock_in_poor_accuracy(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-in", json=_body(project, accuracy=120), headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["code"] == "GpsInaccurate"


def test_clock_in_unknown_field_rejected(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-in", json=_body(project, deviceHack=True), headers=headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_clock_in_unknown_project(client, worker, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-in", json={"projectId": 404, "lat": 1.0, "lon": 1.0}, headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"]["code"] == "ProjectNotFound"


def test_clock_in_requires_auth(client, project):
    response = client.post("/api/v1/attendance/clock-in", json=_body(project))
    assert response.status_code in [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN]


def test_clock_in_with_invalid_token(client, project):
    response = client.post(
        "/api/v1/attendance/clock-in",
        json=_body(project),
        headers={"Authorization": "Bearer invalid_token_here"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_clock_out_before_clock_in(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/clock-out", json=_body(project), headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["code"] == "NotClockedIn"


def test_clock_out_outside_geofence_succeeds(client, clock, worker, project, login):
    headers = login("WRK001")
    client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers)
    clock.advance(hours=8)
    response = client.post("/api/v1/attendance/clock-out", json=_body(project, meters=400), headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "CHECKED_OUT"
    assert data["record"]["insideGeofenceAtCheckout"] is False
    assert data["record"]["checkOutTime"] == "2026-10-19T17:00:00+05:30"


def test_lunch_cycle_and_status(client, clock, worker, project, login):
    headers = login("WRK001")
    client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers)
    clock.advance(hours=1)

    response = client.get(f"/api/v1/attendance/status?projectId={project.id}", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["session"] == "CHECKED_IN"
    assert data["elapsedSeconds"] == 3600
    assert data["checkInTime"] == "2026-10-19T09:00:00+05:30"

    response = client.post("/api/v1/attendance/lunch-start", json=_body(project), headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "ON_LUNCH"

    data = client.get("/api/v1/attendance/status", headers=headers).json()
    assert data["session"] == "ON_LUNCH"
    assert data["elapsedSeconds"] == 0

    response = client.post("/api/v1/attendance/clock-out", json=_body(project), headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["code"] == "CannotClockOutDuringLunch"

    response = client.post("/api/v1/attendance/lunch-start", json=_body(project), headers=headers)
    assert response.json()["detail"]["code"] == "LunchAlreadyActive"

    clock.advance(minutes=30)
    response = client.post("/api/v1/attendance/lunch-end", json=_body(project), headers=headers)
    assert response.status_code == 200
    assert response.json()["record"]["lunchEndTime"] == "2026-10-19T10:30:00+05:30"


def test_lunch_end_without_lunch_is_conflict(client, worker, project, login):
    headers = login("WRK001")
    client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers)
    response = client.post("/api/v1/attendance/lunch-end", json=_body(project), headers=headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"]["code"] == "InvalidState"


def test_status_before_clock_in(client, worker, login):
    headers = login("WRK001")
    data = client.get("/api/v1/attendance/status", headers=headers).json()
    assert data["session"] == "NOT_LOGGED_IN"
    assert data["recordId"] is None
    assert data["elapsedSeconds"] == 0
    assert data["workDate"] == "2026-10-19"


def test_validate_geofence(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/validate-geofence", json=_body(project, meters=110), headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["compliant"] is True
    assert data["insideRadius"] is False
    assert data["allowedDistance"] == 120
    assert data["geofence"]["radiusM"] == 100
    assert data["geofence"]["toleranceM"] == 20


def test_location_log(client, worker, project, login):
    headers = login("WRK001")
    response = client.post("/api/v1/attendance/location-log", json=_body(project, meters=300, accuracy=10), headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["insideGeofence"] is False
    assert data["logType"] == "PING"
    assert data["loggedAt"] == "2026-10-19T09:00:00+05:30"


def test_history(client, clock, worker, project, login):
    headers = login("WRK001")
    client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers)
    client.post("/api/v1/attendance/clock-out", json=_body(project), headers=headers)
    clock.advance(days=1)
    client.post("/api/v1/attendance/clock-in", json=_body(project), headers=headers)

    response = client.get("/api/v1/attendance/history?from=2026-10-01&to=2026-10-31", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [item["workDate"] for item in data["items"]] == ["2026-10-20", "2026-10-19"]

    response = client.get("/api/v1/attendance/history?from=2026-10-31&to=2026-10-01", headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_history_for_another_worker(client, worker, other_worker, supervisor, project, login):
    client.post("/api/v1/attendance/clock-in", json=_body(project), headers=login("WRK001"))

    url = f"/api/v1/attendance/history?from=2026-10-19&to=2026-10-19&workerId={worker.id}"
    response = client.get(url, headers=login("SUP001"))
    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["items"][0]["employeeId"] == worker.id

    response = client.get(url, headers=login("WRK002"))
    assert response.status_code == status.HTTP_403_FORBIDDEN
