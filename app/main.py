"""
Site Workforce Engine - Main Application Entry Point
Attendance sessions and task execution for construction sites
"""
import logging
from urllib.parse import urlparse

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    engine_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import EngineError
from app.core.logging import setup_logging
from app.db.init_db import ensure_initial_admin
from app.db.session import SessionLocal

setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """DATABASE_URL with the password replaced, safe to log."""
    parsed = urlparse(url)
    if not parsed.password:
        return url
    return url.replace(f":{parsed.password}@", ":****@", 1)


app = FastAPI(
    title="Site Workforce Engine",
    description="Geofenced attendance sessions and dependency-gated task execution",
    version=settings.VERSION or "1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# EngineError subclasses HTTPException, so it must be registered first
app.add_exception_handler(EngineError, engine_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    """A missing table means migrations were not applied; say so instead of a bare 500."""
    msg = str(exc).lower()
    if "no such table" in msg or ("relation" in msg and "does not exist" in msg):
        logger.error("Schema missing on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Run alembic upgrade head"})
    return await generic_exception_handler(request, exc)


app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup() -> None:
    """Check production settings, log the database and work day, seed the first admin."""
    settings.validate_production()
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    logger.info("WORK_TIMEZONE: %s", settings.WORK_TIMEZONE)

    db = SessionLocal()
    try:
        ensure_initial_admin(db)
    except OperationalError as e:
        db.rollback()
        # Tables do not exist before the first migration
        logger.warning("Skipping initial admin bootstrap, database not ready: %s", e)
    finally:
        db.close()
