"""
API endpoints for the driver ledger (conta corrente)
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..models.ledger import DriverLedgerEntry
from ..models.user import User
from ..services import ledger as ledger_service
from ..services.refs import get_or_404
from ..utils.auth import get_current_active_user
from ..utils.permissions import Permission, require_permission

router = APIRouter()


class LedgerEntryIn(BaseModel):
    driver_id: int
    date: date
    type: str
    category: str
    amount: float = Field(gt=0)
    description: str = Field(min_length=1)


class LedgerEntryOut(LedgerEntryIn):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DriverBalance(BaseModel):
    driver_id: int
    driver_name: str
    entries: int
    credits: float
    debits: float
    balance: float


class DriverStatement(BaseModel):
    driver_id: int
    driver_name: str
    credits: float
    debits: float
    balance: float
    items: List[LedgerEntryOut]


@router.get("/balances", response_model=List[DriverBalance])
async def balances(
    q: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Balance of every active driver (credits minus debits)"""
    return ledger_service.driver_balances(db, q)


@router.get("/drivers/{driver_id}", response_model=DriverStatement)
async def driver_statement(
    driver_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return ledger_service.statement(db, driver_id)


@router.post("/", response_model=LedgerEntryOut, status_code=status.HTTP_201_CREATED)
async def add_entry(
    data: LedgerEntryIn,
    current_user: User = Depends(require_permission(Permission.MANAGE_FINANCIALS)),
    db: Session = Depends(get_db)
):
    entry = ledger_service.add_entry(db, current_user, data.model_dump())
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, DriverLedgerEntry, entry_id, "Ledger entry")
    ledger_service.delete_entry(db, current_user, entry)
    db.commit()
