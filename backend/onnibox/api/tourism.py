"""
API endpoints for tourism / charter services
"""
from datetime import date, datetime
from typing import List, Optional
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..errors import BusinessRuleError
from ..models.audit import AuditAction
from ..models.registry import Client, Driver, Vehicle
from ..models.tourism import TourismService, TourismStatus, PricingType
from ..models.user import User
from ..services import audit
from ..services.cash import clean_expenses
from ..services.refs import get_or_404, require_reference
from ..utils.auth import get_current_active_user
from ..utils.money import money, money_sum, expenses_total
from ..utils.permissions import Permission, require_permission, can
from ..utils.serialize import model_to_dict
from .route_cash import CashExpenseItem

router = APIRouter()

logger = logging.getLogger(__name__)


class TourismIn(BaseModel):
    client_id: Optional[int] = None
    contractor_name: Optional[str] = None
    destination: str = Field(min_length=1)
    departure_date: date
    return_date: date
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    pricing_type: str = PricingType.FIXED
    price_per_km: Optional[float] = Field(default=None, ge=0)
    total_km: Optional[float] = Field(default=None, ge=0)
    daily_rate: Optional[float] = Field(default=None, ge=0)
    days: Optional[int] = Field(default=None, ge=0)
    contract_value: float = Field(default=0.0, ge=0)
    expenses: List[CashExpenseItem] = []
    status: str = TourismStatus.QUOTE
    notes: Optional[str] = None


class TourismOut(BaseModel):
    id: int
    client_id: Optional[int]
    contractor_name: str
    destination: str
    departure_date: date
    return_date: date
    driver_id: Optional[int]
    vehicle_id: Optional[int]
    pricing_type: str
    price_per_km: Optional[float]
    total_km: Optional[float]
    daily_rate: Optional[float]
    days: Optional[int]
    contract_value: float
    expenses: List[CashExpenseItem]
    status: str
    notes: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TourismStats(BaseModel):
    total_value: float
    total_expenses: float
    profit: float
    count: int
    completed: int


class TourismList(BaseModel):
    items: List[TourismOut]
    stats: TourismStats


def calculated_value(total_km, price_per_km, days, daily_rate) -> float:
    """Kilometre price plus daily rate"""
    return money(money((total_km or 0) * (price_per_km or 0)) + money((days or 0) * (daily_rate or 0)))


def _apply(db: Session, service: TourismService, data: TourismIn, user: User) -> None:
    if data.status not in TourismStatus.ALL:
        raise BusinessRuleError(f"Status must be one of {', '.join(TourismStatus.ALL)}")
    if data.pricing_type not in (PricingType.FIXED, PricingType.CALCULATED):
        raise BusinessRuleError("Pricing type must be FIXED or CALCULATED")
    if data.return_date < data.departure_date:
        raise BusinessRuleError("Return date cannot be before departure date")

    # New services start as QUOTE; any other status is an approval step
    current_status = service.status or TourismStatus.QUOTE
    if data.status != current_status and not can(user, Permission.APPROVE_TOURISM):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission '{Permission.APPROVE_TOURISM}' required to change the status"
        )

    if data.client_id is not None:
        client = require_reference(db, Client, data.client_id, "Client")
        contractor = client.name
    elif data.contractor_name and data.contractor_name.strip():
        contractor = data.contractor_name.strip()
    else:
        raise BusinessRuleError("A client or a contractor name is required")
    if data.driver_id is not None:
        require_reference(db, Driver, data.driver_id, "Driver")
    if data.vehicle_id is not None:
        require_reference(db, Vehicle, data.vehicle_id, "Vehicle")

    values = data.model_dump()
    values["contractor_name"] = contractor or "Desconhecido"
    values["expenses"] = clean_expenses(values["expenses"])
    if data.pricing_type == PricingType.CALCULATED:
        values["contract_value"] = calculated_value(data.total_km, data.price_per_km, data.days, data.daily_rate)
    else:
        values["contract_value"] = money(data.contract_value)

    for field, value in values.items():
        setattr(service, field, value)


@router.get("/", response_model=TourismList)
async def list_services(
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Services by departure date, with totals of the non-canceled ones"""
    query = db.query(TourismService)
    if start:
        query = query.filter(TourismService.departure_date >= start)
    if end:
        query = query.filter(TourismService.departure_date <= end)
    if status:
        query = query.filter(TourismService.status == status)
    items = query.order_by(TourismService.departure_date.desc(), TourismService.id.desc()).all()

    active = [s for s in items if s.status != TourismStatus.CANCELED]
    total_value = money_sum(s.contract_value for s in active)
    total_expenses = money_sum(expenses_total(s.expenses) for s in active)
    return {
        "items": items,
        "stats": {
            "total_value": total_value,
            "total_expenses": total_expenses,
            "profit": money(total_value - total_expenses),
            "count": len(active),
            "completed": sum(1 for s in items if s.status == TourismStatus.COMPLETED),
        },
    }


@router.get("/{service_id}", response_model=TourismOut)
async def get_service(
    service_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, TourismService, service_id, "Tourism service")


@router.post("/", response_model=TourismOut, status_code=status.HTTP_201_CREATED)
async def create_service(
    data: TourismIn,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    service = TourismService()
    _apply(db, service, data, current_user)
    db.add(service)
    db.flush()
    audit.record(db, current_user, AuditAction.CREATE, "TourismService", service.id,
                 f"{service.contractor_name} -> {service.destination} ({service.status})", snapshot=service)
    db.commit()
    db.refresh(service)
    return service


@router.put("/{service_id}", response_model=TourismOut)
async def update_service(
    service_id: int,
    data: TourismIn,
    current_user: User = Depends(require_permission(Permission.RECORD_ENTRIES)),
    db: Session = Depends(get_db)
):
    service = get_or_404(db, TourismService, service_id, "Tourism service")
    previous = model_to_dict(service)
    _apply(db, service, data, current_user)
    db.flush()
    audit.record(db, current_user, AuditAction.UPDATE, "TourismService", service.id,
                 f"{service.destination} updated ({service.status})", snapshot=service, previous=previous)
    db.commit()
    db.refresh(service)
    return service


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
    db: Session = Depends(get_db)
):
    service = get_or_404(db, TourismService, service_id, "Tourism service")
    audit.record(db, current_user, AuditAction.DELETE, "TourismService", service.id,
                 f"{service.destination} deleted", previous=service)
    db.delete(service)
    db.commit()
