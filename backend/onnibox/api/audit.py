"""
API endpoints for the audit trail (read only)
"""
from datetime import date, datetime
from typing import List, Optional
import json
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel
from ..database import get_db
from ..models.audit import AuditLog
from ..models.user import User
from ..services.audit import query_logs
from ..services.refs import get_or_404
from ..utils.permissions import Permission, require_permission

router = APIRouter()


class AuditEntry(BaseModel):
    id: int
    timestamp: datetime
    user_id: Optional[int]
    user_name: str
    user_role: Optional[str]
    action: str
    entity: str
    entity_id: Optional[str]
    details: Optional[str]

    class Config:
        from_attributes = True


class AuditDetail(AuditEntry):
    snapshot: Optional[dict] = None
    previous_snapshot: Optional[dict] = None


def _load(text):
    return json.loads(text) if text else None


@router.get("/", response_model=List[AuditEntry])
async def list_audit(
    user: Optional[str] = None,
    entity: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 500,
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db)
):
    """Newest first"""
    return query_logs(db, user, entity, action, start, end, limit)


@router.get("/{log_id}", response_model=AuditDetail)
async def audit_detail(
    log_id: int,
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db)
):
    """Entry with before / after snapshots decoded"""
    entry = get_or_404(db, AuditLog, log_id, "Audit entry")
    detail = AuditEntry.model_validate(entry).model_dump()
    detail["snapshot"] = _load(entry.snapshot)
    detail["previous_snapshot"] = _load(entry.previous_snapshot)
    return detail
