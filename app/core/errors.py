"""
Central error handling for the Site Workforce Engine

Every error leaves the API as {"error": true, "status_code", "detail", "path"}.
Engine errors carry a dict detail with a stable code; validation errors add
the pydantic error list outside production.
"""
import logging
import traceback
from typing import Any, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

from app.core.config import settings
from app.core.exceptions import EngineError

logger = logging.getLogger(__name__)

# Error responses bypass CORSMiddleware on some paths, so they carry their own headers
_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}

_JSON_SCALARS = (str, int, float, bool, type(None))


def _error_response(
    request: Request,
    status_code: int,
    detail: Any,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    content = {"error": True, "status_code": status_code, "detail": detail, "path": str(request.url.path)}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers={**_CORS_HEADERS, **(headers or {})})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render an HTTPException with its status, detail and headers (e.g. WWW-Authenticate)."""
    return _error_response(request, exc.status_code, exc.detail, exc.headers)


async def engine_exception_handler(request: Request, exc: EngineError) -> JSONResponse:
    """
    Handle client-correctable engine errors.

    The detail (code, message and context such as distance or unmet
    dependency ids) is passed through verbatim so the client can show it.
    Conflicts are logged louder than ordinary rejections.
    """
    level = logging.WARNING if exc.status_code == status.HTTP_409_CONFLICT else logging.INFO
    logger.log(level, "Rejected %s %s: %s", request.method, request.url.path, exc)
    return _error_response(request, exc.status_code, exc.detail, exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    422 for malformed bodies and queries (unknown fields, out-of-range
    coordinates, bad dates). Field-level errors are hidden in production.
    """
    if settings.APP_ENV == "prod":
        return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error: Invalid request data")

    errors = []
    for e in exc.errors():
        err = dict(e)
        # ctx may hold the raised ValueError itself
        if isinstance(err.get("ctx"), dict):
            err["ctx"] = {k: (v if isinstance(v, _JSON_SCALARS) else str(v)) for k, v in err["ctx"].items()}
        errors.append(err)
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors=errors)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    500 for anything unexpected. The message is hidden in production and the
    traceback is only returned locally.
    """
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        traceback=traceback.format_exc() if settings.APP_ENV == "local" else None,
    )
