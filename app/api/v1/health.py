"""
Service health and build metadata
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.constants import SERVICE_NAME, SYSTEM_CREDIT
from app.core.deps import get_clock, get_db
from app.utils.datetime_utils import Clock

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Liveness plus a database round trip. Reports the current work date so
    devices can spot a server whose day boundary disagrees with theirs.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error("Health check database ping failed: %s", e)
        database = "unavailable"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": SERVICE_NAME,
        "database": database,
        "work_date": clock.today().isoformat(),
        "credit": SYSTEM_CREDIT,
    }


@router.get("/version")
async def get_version():
    """Service name, version (git SHA or semver), environment and work time zone"""
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
        "work_timezone": settings.WORK_TIMEZONE,
        "credit": SYSTEM_CREDIT,
    }
