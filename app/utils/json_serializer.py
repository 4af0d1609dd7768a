"""
JSON-safe conversion for the meta columns of event, audit and geo snapshots.
Datetimes are stored as UTC ISO strings; geofence results keep their rounded
distances.
"""
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from app.utils.datetime_utils import ensure_utc


def sanitize_for_json(obj: Any) -> Any:
    """Recursively convert a meta payload into values a JSON column accepts."""
    if obj is None or isinstance(obj, (str, bool, int)):
        return obj
    if isinstance(obj, float):
        return round(obj, 6)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return ensure_utc(obj).isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [sanitize_for_json(v) for v in obj]
    # GeofenceResult and friends
    if hasattr(obj, "as_dict"):
        return sanitize_for_json(obj.as_dict())
    if is_dataclass(obj) and not isinstance(obj, type):
        return sanitize_for_json(asdict(obj))
    return str(obj)
