"""
Domain errors raised by the attendance and task-execution services.

Each error is an HTTPException so services can raise it directly and the
central handlers in app.core.errors render it. The detail is always a dict
with a stable ``code`` and a human readable ``message``; geofence and
dependency errors carry the values the client needs to correct the request.
"""
from typing import Any, Dict, Iterable, Optional
from fastapi import HTTPException, status


class EngineError(HTTPException):
    """Base class for client-correctable engine errors."""

    code = "EngineError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request rejected"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        detail: Dict[str, Any] = {"code": self.code, "message": self.message}
        detail.update(context)
        super().__init__(status_code=type(self).status_code, detail=detail)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class OutsideGeofence(EngineError):
    code = "OutsideGeofence"
    default_message = "Outside project geofence"

    def __init__(self, distance: float, allowed_distance: float, message: Optional[str] = None):
        super().__init__(
            message or f"Outside project geofence: {distance:.1f}m from site, {allowed_distance:.1f}m allowed",
            distance=round(distance, 2),
            allowedDistance=round(allowed_distance, 2),
        )


class GpsInaccurate(EngineError):
    code = "GpsInaccurate"
    default_message = "GPS accuracy is too low"

    def __init__(self, accuracy: float, required_accuracy: float):
        super().__init__(
            f"GPS accuracy {accuracy:.1f}m is worse than the required {required_accuracy:.1f}m",
            accuracy=accuracy,
            requiredAccuracy=required_accuracy,
        )


class LocationUnavailable(EngineError):
    code = "LocationUnavailable"
    default_message = "Location is required; enable location services and retry"


class NotClockedIn(EngineError):
    code = "NotClockedIn"
    default_message = "Not clocked in"


class AlreadyClockedIn(EngineError):
    code = "AlreadyClockedIn"
    default_message = "Already clocked in today"


class LunchAlreadyActive(EngineError):
    code = "LunchAlreadyActive"
    default_message = "Lunch break already started"


class CannotClockOutDuringLunch(EngineError):
    code = "CannotClockOutDuringLunch"
    default_message = "End the lunch break before clocking out"


class DependenciesNotMet(EngineError):
    code = "DependenciesNotMet"
    default_message = "Dependent tasks must be completed first"

    def __init__(self, unmet: Iterable[int]):
        unmet_ids = sorted(set(unmet))
        super().__init__(
            f"Dependent tasks must be completed first: {', '.join(str(i) for i in unmet_ids)}",
            unmetDependencies=unmet_ids,
        )


class InvalidState(EngineError):
    code = "InvalidState"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Transition not allowed from the current status"


class AssignmentNotFound(EngineError):
    code = "AssignmentNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Task assignment not found"


class ProjectNotFound(EngineError):
    code = "ProjectNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Project not found"


class ConflictRetryExceeded(EngineError):
    code = "ConflictRetryExceeded"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The record was changed by another request; reload and try again"
