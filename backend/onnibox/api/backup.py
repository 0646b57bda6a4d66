"""
API endpoints for JSON backup / restore
"""
import logging
from fastapi import APIRouter, Depends, Body
from sqlalchemy.orm import Session
from ..database import get_db
from ..models.audit import AuditAction
from ..models.user import User
from ..services import audit
from ..services import backup as backup_service
from ..utils.permissions import Permission, require_permission

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/export")
async def export_backup(
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    """Full dump of every table"""
    logger.info("[BACKUP] Export requested by %s", current_user.email)
    return backup_service.export_backup(db)


@router.post("/import")
async def import_backup(
    payload: dict = Body(...),
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    """Replace all data with the payload (single transaction)"""
    # the users table is replaced too, so keep the e-mail before it goes
    requested_by = current_user.email
    counts = backup_service.import_backup(db, payload)
    db.commit()
    logger.info("[BACKUP] Import by %s: %s", requested_by, counts)
    return {"imported": counts}


@router.post("/reset")
async def reset_data(
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    """Delete all business data, keeping users"""
    removed = backup_service.reset_business_data(db)
    audit.record(db, current_user, AuditAction.DELETE, "System", None, f"Business data reset ({removed} rows)")
    db.commit()
    return {"removed": removed}
