"""
API endpoints for the fuel log
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..errors import BusinessRuleError
from ..models.expense import PaymentMethod
from ..models.fuel import FuelEntry
from ..models.user import User
from ..services import fuel as fuel_service
from ..services.refs import get_or_404
from ..utils.auth import get_current_active_user
from ..utils.permissions import Permission, require_permission

router = APIRouter()


class FuelIn(BaseModel):
    date: date
    vehicle_id: int
    amount: float = Field(gt=0)
    liters: float = Field(gt=0)
    mileage: float = Field(gt=0)
    is_full_tank: bool = True
    payment_method: str = PaymentMethod.CARD
    notes: Optional[str] = None


class FuelOut(BaseModel):
    id: int
    date: date
    vehicle_id: int
    amount: float
    liters: float
    mileage: float
    is_full_tank: bool
    payment_method: str
    notes: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FuelRow(BaseModel):
    id: int
    date: date
    vehicle_id: int
    vehicle_plate: str
    vehicle_description: str
    amount: float
    liters: float
    mileage: float
    is_full_tank: bool
    payment_method: str
    notes: Optional[str]
    price_per_liter: Optional[float]
    previous_mileage: Optional[float]
    dist_traveled: Optional[float]
    km_per_liter: Optional[float]
    cost_per_km: Optional[float]


class FuelStats(BaseModel):
    total_spent: float
    total_liters: float
    avg_km_per_liter: float
    avg_price: float
    avg_cost_per_km: float


class FuelList(BaseModel):
    items: List[FuelRow]
    stats: FuelStats


def _check_payment(method: str) -> None:
    if method not in PaymentMethod.FUEL:
        raise BusinessRuleError(f"Payment method must be one of {', '.join(PaymentMethod.FUEL)}")


@router.get("/", response_model=FuelList)
async def list_fuel(
    start: Optional[date] = None,
    end: Optional[date] = None,
    vehicle_id: Optional[int] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Entries enriched with consumption figures, plus period stats"""
    return fuel_service.list_fuel(db, start, end, vehicle_id)


@router.post("/", response_model=FuelOut, status_code=status.HTTP_201_CREATED)
async def create_fuel(
    data: FuelIn,
    allow_lower_mileage: bool = False,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    _check_payment(data.payment_method)
    entry = fuel_service.create_fuel(db, current_user, data.model_dump(), allow_lower_mileage)
    db.commit()
    db.refresh(entry)
    return entry


@router.put("/{entry_id}", response_model=FuelOut)
async def update_fuel(
    entry_id: int,
    data: FuelIn,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    _check_payment(data.payment_method)
    entry = get_or_404(db, FuelEntry, entry_id, "Fuel entry")
    fuel_service.update_fuel(db, current_user, entry, data.model_dump())
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fuel(
    entry_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
    db: Session = Depends(get_db)
):
    entry = get_or_404(db, FuelEntry, entry_id, "Fuel entry")
    fuel_service.delete_fuel(db, current_user, entry)
    db.commit()
