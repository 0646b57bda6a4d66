"""
API endpoints for route cash (driver cash bags)
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..models.cash import RouteCash, CashStatus
from ..models.user import User
from ..services import cash as cash_service
from ..services.refs import get_or_404
from ..utils.auth import get_current_active_user
from ..utils.permissions import Permission, require_permission

router = APIRouter()


class CashExpenseItem(BaseModel):
    type_id: Optional[int] = None
    amount: float = Field(ge=0)
    note: str = ""


class RouteCashIn(BaseModel):
    date: date
    route_id: int
    driver_id: int
    vehicle_id: int
    passengers: int = Field(default=0, ge=0)
    revenue_informed: float = Field(default=0.0, ge=0)
    expenses: List[CashExpenseItem] = []
    cash_handed: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None


class RouteCashOut(BaseModel):
    id: int
    date: date
    route_id: int
    driver_id: int
    vehicle_id: int
    passengers: int
    revenue_informed: float
    expenses: List[CashExpenseItem]
    cash_expenses: float
    net_cash_expected: float
    cash_handed: float
    diff: float
    notes: Optional[str]
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RouteCashSummary(BaseModel):
    revenue: float
    expenses: float
    handed: float
    diff: float


class RouteCashList(BaseModel):
    items: List[RouteCashOut]
    summary: RouteCashSummary


@router.get("/", response_model=RouteCashList)
async def list_route_cash(
    start: Optional[date] = None,
    end: Optional[date] = None,
    line_id: Optional[int] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Entries of the period, newest first, with summary totals"""
    items, summary = cash_service.list_route_cash(db, start, end, line_id)
    return {"items": items, "summary": summary}


@router.get("/{entry_id}", response_model=RouteCashOut)
async def get_route_cash(
    entry_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, RouteCash, entry_id, "Route cash")


@router.post("/", response_model=RouteCashOut, status_code=status.HTTP_201_CREATED)
async def create_route_cash(
    data: RouteCashIn,
    allow_future: bool = False,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    entry = cash_service.create_route_cash(db, current_user, data.model_dump(), allow_future)
    db.commit()
    db.refresh(entry)
    return entry


@router.put("/{entry_id}", response_model=RouteCashOut)
async def update_route_cash(
    entry_id: int,
    data: RouteCashIn,
    allow_future: bool = False,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, RouteCash, entry_id, "Route cash")
    cash_service.update_route_cash(db, current_user, entry, data.model_dump(), allow_future)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/check", response_model=RouteCashOut)
async def check_route_cash(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    """Individual conference: mark the entry CLOSED"""
    entry = get_or_404(db, RouteCash, entry_id, "Route cash")
    cash_service.set_route_cash_status(db, current_user, entry, CashStatus.CLOSED)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/reopen", response_model=RouteCashOut)
async def reopen_route_cash(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.REOPEN_CASH)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, RouteCash, entry_id, "Route cash")
    cash_service.set_route_cash_status(db, current_user, entry, CashStatus.OPEN)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_route_cash(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, RouteCash, entry_id, "Route cash")
    cash_service.delete_route_cash(db, current_user, entry)
    db.commit()
