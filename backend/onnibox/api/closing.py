"""
API endpoints for the daily closing (fechamento de caixa)
"""
from datetime import date, datetime
from typing import List, Optional
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel
from ..config import settings
from ..database import get_db
from ..models.user import User
from ..services import closing as closing_service
from ..services.backup import write_backup_file
from ..utils.auth import get_current_active_user
from ..utils.permissions import Permission, require_permission

router = APIRouter()

logger = logging.getLogger(__name__)


class CloseRequest(BaseModel):
    date: date
    notes: Optional[str] = None


class ReopenRequest(BaseModel):
    date: date
    reason: Optional[str] = None


class DailyCloseOut(BaseModel):
    id: int
    date: date
    total_route_revenue: float
    total_agency_revenue: float
    total_expenses: float
    total_agency_expenses: float
    total_commissions: float
    net_result: float
    total_diff: float
    notes: Optional[str]
    closed_at: datetime
    closed_by: Optional[str]

    class Config:
        from_attributes = True


@router.get("/report")
async def day_report(
    day: date,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Aggregated figures of one date (live, or frozen when closed)"""
    return closing_service.build_day_report(db, day)


@router.get("/", response_model=List[DailyCloseOut])
async def list_closes(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return closing_service.list_closes(db, start, end)


@router.post("/close", response_model=DailyCloseOut)
async def close_day(
    data: CloseRequest,
    current_user: User = Depends(require_permission(Permission.CLOSE_BOX)),
    db: Session = Depends(get_db)
):
    close = closing_service.close_day(db, current_user, data.date, data.notes)
    db.commit()
    db.refresh(close)

    if settings.AUTO_BACKUP_ON_CLOSE:
        try:
            write_backup_file(db, label=f"close_{data.date.isoformat()}")
        except OSError as e:
            # the day stays closed; only the safety copy is missing
            logger.error("[BACKUP] Automatic backup after closing %s failed: %s", data.date, e)

    return close


@router.post("/reopen")
async def reopen_day(
    data: ReopenRequest,
    current_user: User = Depends(require_permission(Permission.REOPEN_CASH)),
    db: Session = Depends(get_db)
):
    closing_service.reopen_day(db, current_user, data.date, data.reason)
    db.commit()
    return {"date": data.date, "is_closed": False}
