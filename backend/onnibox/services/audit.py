"""
Audit trail writer.

Entries are added to the caller's session, so they are committed (or rolled
back) together with the change they describe.
"""
from datetime import date, datetime, time
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..models.audit import AuditLog
from ..utils.serialize import dump_snapshot

logger = logging.getLogger(__name__)


def record(
    db: Session,
    user,
    action: str,
    entity: str,
    entity_id=None,
    details: str = "",
    snapshot=None,
    previous=None,
) -> AuditLog:
    """
    Add an audit entry.

    ``snapshot`` / ``previous`` may be mapped instances or dicts; they are
    stored as JSON text of the record after / before the change.
    """
    entry = AuditLog(
        user_id=getattr(user, "id", None),
        user_name=getattr(user, "name", None) or "system",
        user_role=getattr(user, "role", None),
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
        snapshot=dump_snapshot(snapshot),
        previous_snapshot=dump_snapshot(previous),
    )
    db.add(entry)
    logger.info("[AUDIT] %s %s#%s by %s", action, entity, entity_id, entry.user_name)
    return entry


def query_logs(
    db: Session,
    user_name: Optional[str] = None,
    entity: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 500,
):
    query = db.query(AuditLog)
    if user_name:
        query = query.filter(AuditLog.user_name.ilike(f"%{user_name}%"))
    if entity:
        query = query.filter(AuditLog.entity == entity)
    if action:
        query = query.filter(AuditLog.action == action)
    if start:
        query = query.filter(AuditLog.timestamp >= datetime.combine(start, time.min))
    if end:
        query = query.filter(AuditLog.timestamp <= datetime.combine(end, time.max))
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
