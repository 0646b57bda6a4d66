"""
API endpoints for agency cash (sales transferred by agencies)
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..models.cash import AgencyCash, CashStatus
from ..models.user import User
from ..services import cash as cash_service
from ..services.refs import get_or_404
from ..utils.auth import get_current_active_user
from ..utils.permissions import Permission, require_permission
from .route_cash import CashExpenseItem

router = APIRouter()


class AgencyCashIn(BaseModel):
    date: date
    agency_id: int
    value_informed: float = Field(default=0.0, ge=0)
    value_received: float = Field(default=0.0, ge=0)
    expenses: List[CashExpenseItem] = []
    notes: Optional[str] = None


class AgencyCashOut(BaseModel):
    id: int
    date: date
    agency_id: int
    value_informed: float
    value_received: float
    expenses: List[CashExpenseItem]
    expenses_total: float
    commission_pct: float
    commission_value: float
    net_expected: float
    diff: float
    notes: Optional[str]
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AgencyCashSummary(BaseModel):
    informed: float
    received: float
    commissions: float
    expenses: float
    diff: float


class AgencyCashList(BaseModel):
    items: List[AgencyCashOut]
    summary: AgencyCashSummary


@router.get("/", response_model=AgencyCashList)
async def list_agency_cash(
    start: Optional[date] = None,
    end: Optional[date] = None,
    agency_id: Optional[int] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    items, summary = cash_service.list_agency_cash(db, start, end, agency_id)
    return {"items": items, "summary": summary}


@router.get("/{entry_id}", response_model=AgencyCashOut)
async def get_agency_cash(
    entry_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, AgencyCash, entry_id, "Agency cash")


@router.post("/", response_model=AgencyCashOut, status_code=status.HTTP_201_CREATED)
async def create_agency_cash(
    data: AgencyCashIn,
    allow_future: bool = False,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    entry = cash_service.create_agency_cash(db, current_user, data.model_dump(), allow_future)
    db.commit()
    db.refresh(entry)
    return entry


@router.put("/{entry_id}", response_model=AgencyCashOut)
async def update_agency_cash(
    entry_id: int,
    data: AgencyCashIn,
    allow_future: bool = False,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, AgencyCash, entry_id, "Agency cash")
    cash_service.update_agency_cash(db, current_user, entry, data.model_dump(), allow_future)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/check", response_model=AgencyCashOut)
async def check_agency_cash(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, AgencyCash, entry_id, "Agency cash")
    cash_service.set_agency_cash_status(db, current_user, entry, CashStatus.CLOSED)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/reopen", response_model=AgencyCashOut)
async def reopen_agency_cash(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.REOPEN_CASH)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, AgencyCash, entry_id, "Agency cash")
    cash_service.set_agency_cash_status(db, current_user, entry, CashStatus.OPEN)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agency_cash(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, AgencyCash, entry_id, "Agency cash")
    cash_service.delete_agency_cash(db, current_user, entry)
    db.commit()
