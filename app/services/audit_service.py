"""
Audit trail for state-changing engine operations
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from app.db.base import Base
from app.models.audit_log import AuditLog
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


def log_audit(
    db: Session,
    actor_id: int,
    action: str,
    entity: Optional[Base] = None,
    meta: Optional[Dict[str, Any]] = None,
    entity_type: Optional[str] = None,
    *,
    at: datetime,
) -> AuditLog:
    """
    Stage an audit row in the current unit of work; the caller commits it
    together with the change it describes.

    entity_type defaults to the entity's table name and entity_id to its
    primary key, so the entity must be flushed first. Pass entity_type alone
    for actions without a row (e.g. "auth").

    `at` is the moment of the action on the caller's clock, so the row lines
    up with the events it describes.
    """
    entity_id = None
    if entity is not None:
        entity_type = entity_type or entity.__tablename__
        entity_id = entity.id
    if entity_type is None:
        raise ValueError(f"Audit action {action} needs an entity or an entity_type")

    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=sanitize_for_json(meta) if meta else None,
        created_at=at,
    )
    db.add(audit_log)
    logger.debug("Audit %s: actor_id=%s %s/%s", action, actor_id, entity_type, entity_id)
    return audit_log
