"""
API endpoints for the registries (drivers, vehicles, lines, schedules,
agencies, clients, suppliers, expense types, commission rules).

Every registry exposes the same operations, so the routers are built by
``build_registry_router`` from the model, its schemas and an optional
validation hook.
"""
from datetime import date
from typing import List, Optional, Callable
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..errors import BusinessRuleError, ConflictError
from ..models.audit import AuditAction
from ..models.registry import (
    Driver, Vehicle, Line, RouteDef, Agency, Client, Supplier,
    ExpenseType, CommissionRule, CommissionTarget,
)
from ..models.user import User
from ..services import audit
from ..services.refs import get_or_404, require_reference, ensure_not_referenced
from ..utils.auth import get_current_active_user
from ..utils.permissions import Permission, require_permission
from ..utils.serialize import model_to_dict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class DriverIn(BaseModel):
    name: str = Field(min_length=1)
    cpf: Optional[str] = None
    phone: Optional[str] = None
    cnh: Optional[str] = None
    cnh_category: Optional[str] = None
    admission_date: Optional[date] = None
    active: bool = True


class DriverOut(DriverIn):
    id: int

    class Config:
        from_attributes = True


class VehicleIn(BaseModel):
    plate: str = Field(min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    seats: Optional[int] = Field(default=None, ge=0)
    description: str = ""
    initial_mileage: Optional[float] = Field(default=None, ge=0)
    active: bool = True


class VehicleOut(VehicleIn):
    id: int

    class Config:
        from_attributes = True


class LineIn(BaseModel):
    name: str = Field(min_length=1)
    active: bool = True


class LineOut(LineIn):
    id: int

    class Config:
        from_attributes = True


class RouteIn(BaseModel):
    line_id: int
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    time: str = Field(pattern=r"^\d{2}:\d{2}$")
    active: bool = True


class RouteOut(RouteIn):
    id: int

    class Config:
        from_attributes = True


class AgencyIn(BaseModel):
    name: str = Field(min_length=1)
    manager_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: str = Field(min_length=1)
    address: Optional[str] = None
    active: bool = True


class AgencyOut(AgencyIn):
    id: int

    class Config:
        from_attributes = True


class ClientIn(BaseModel):
    type: str = "PF"
    name: str = Field(min_length=1)
    trade_name: Optional[str] = None
    tax_id: str = Field(min_length=1)
    identity_doc: Optional[str] = None
    phone: str = Field(min_length=1)
    email: Optional[str] = None
    zip_code: Optional[str] = None
    address: str = ""
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: str = ""
    state: str = ""
    active: bool = True


class ClientOut(ClientIn):
    id: int

    class Config:
        from_attributes = True


class SupplierIn(BaseModel):
    name: str = Field(min_length=1)
    trade_name: Optional[str] = None
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    active: bool = True


class SupplierOut(SupplierIn):
    id: int

    class Config:
        from_attributes = True


class ExpenseTypeIn(BaseModel):
    name: str = Field(min_length=1)
    active: bool = True


class ExpenseTypeOut(ExpenseTypeIn):
    id: int

    class Config:
        from_attributes = True


class CommissionRuleIn(BaseModel):
    target_type: str
    target_id: int
    percentage: float = Field(ge=0, le=100)
    active: bool = True


class CommissionRuleOut(CommissionRuleIn):
    id: int

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# Validation hooks
# ---------------------------------------------------------------------------

def _validate_vehicle(db: Session, data: dict, current: Optional[Vehicle]) -> None:
    data["plate"] = data["plate"].strip().upper()
    query = db.query(Vehicle).filter(Vehicle.plate == data["plate"])
    if current is not None:
        query = query.filter(Vehicle.id != current.id)
    if query.first():
        raise ConflictError(f"Plate {data['plate']} is already registered")


def _validate_route(db: Session, data: dict, current) -> None:
    require_reference(db, Line, data["line_id"], "Line")


def _validate_client(db: Session, data: dict, current) -> None:
    if data["type"] not in ("PF", "PJ"):
        raise BusinessRuleError("Client type must be PF or PJ")
    if data["type"] == "PF":
        data["trade_name"] = None


def _validate_commission(db: Session, data: dict, current) -> None:
    if data["target_type"] == CommissionTarget.AGENCY:
        require_reference(db, Agency, data["target_id"], "Agency")
    elif data["target_type"] == CommissionTarget.DRIVER:
        require_reference(db, Driver, data["target_id"], "Driver")
    else:
        raise BusinessRuleError("Commission target must be DRIVER or AGENCY")


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def build_registry_router(
    model,
    entity: str,
    schema_in,
    schema_out,
    search_fields: List[str],
    order_by: str = "name",
    write_permission: str = Permission.MANAGE_REGISTRIES,
    validate: Optional[Callable] = None,
) -> APIRouter:
    router = APIRouter()

    @router.get("/", response_model=List[schema_out])
    async def list_items(
        active: Optional[bool] = None,
        q: Optional[str] = None,
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
    ):
        query = db.query(model)
        if active is not None:
            query = query.filter(model.active == active)
        if q:
            query = query.filter(or_(*[getattr(model, f).ilike(f"%{q}%") for f in search_fields]))
        return query.order_by(getattr(model, order_by)).all()

    @router.get("/{item_id}", response_model=schema_out)
    async def get_item(
        item_id: int,
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
    ):
        return get_or_404(db, model, item_id, entity)

    @router.post("/", response_model=schema_out, status_code=status.HTTP_201_CREATED)
    async def create_item(
        data: schema_in,
        current_user: User = Depends(require_permission(write_permission)),
        db: Session = Depends(get_db)
    ):
        values = data.model_dump()
        if validate:
            validate(db, values, None)
        item = model(**values)
        db.add(item)
        db.flush()
        audit.record(db, current_user, AuditAction.CREATE, entity, item.id, f"{entity} created", snapshot=item)
        db.commit()
        db.refresh(item)
        return item

    @router.put("/{item_id}", response_model=schema_out)
    async def update_item(
        item_id: int,
        data: schema_in,
        current_user: User = Depends(require_permission(write_permission)),
        db: Session = Depends(get_db)
    ):
        item = get_or_404(db, model, item_id, entity)
        values = data.model_dump()
        if validate:
            validate(db, values, item)
        previous = model_to_dict(item)
        for field, value in values.items():
            setattr(item, field, value)
        db.flush()
        audit.record(db, current_user, AuditAction.UPDATE, entity, item.id, f"{entity} updated",
                     snapshot=item, previous=previous)
        db.commit()
        db.refresh(item)
        return item

    @router.post("/{item_id}/toggle-active", response_model=schema_out)
    async def toggle_item(
        item_id: int,
        current_user: User = Depends(require_permission(write_permission)),
        db: Session = Depends(get_db)
    ):
        item = get_or_404(db, model, item_id, entity)
        previous = model_to_dict(item)
        item.active = not item.active
        db.flush()
        audit.record(db, current_user, AuditAction.UPDATE, entity, item.id,
                     f"{entity} {'activated' if item.active else 'deactivated'}",
                     snapshot=item, previous=previous)
        db.commit()
        db.refresh(item)
        return item

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(
        item_id: int,
        current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
        db: Session = Depends(get_db)
    ):
        item = get_or_404(db, model, item_id, entity)
        ensure_not_referenced(db, item, entity)
        audit.record(db, current_user, AuditAction.DELETE, entity, item.id, f"{entity} deleted", previous=item)
        db.delete(item)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError(f"{entity} {item_id} is still referenced; deactivate it instead")
        db.commit()
        logger.info("[DELETE] %s %s removed by %s", entity, item_id, current_user.email)

    return router


drivers_router = build_registry_router(Driver, "Driver", DriverIn, DriverOut, ["name", "cpf", "phone"])
vehicles_router = build_registry_router(
    Vehicle, "Vehicle", VehicleIn, VehicleOut, ["plate", "description", "brand"],
    order_by="plate", validate=_validate_vehicle,
)
lines_router = build_registry_router(Line, "Line", LineIn, LineOut, ["name"])
routes_router = build_registry_router(
    RouteDef, "Route", RouteIn, RouteOut, ["origin", "destination", "time"],
    order_by="time", validate=_validate_route,
)
agencies_router = build_registry_router(Agency, "Agency", AgencyIn, AgencyOut, ["name", "city", "manager_name"])
clients_router = build_registry_router(
    Client, "Client", ClientIn, ClientOut, ["name", "trade_name", "tax_id", "city"],
    validate=_validate_client,
)
suppliers_router = build_registry_router(
    Supplier, "Supplier", SupplierIn, SupplierOut, ["name", "trade_name", "tax_id", "category"],
)
expense_types_router = build_registry_router(ExpenseType, "ExpenseType", ExpenseTypeIn, ExpenseTypeOut, ["name"])
commissions_router = build_registry_router(
    CommissionRule, "CommissionRule", CommissionRuleIn, CommissionRuleOut, ["target_type"],
    order_by="id", write_permission=Permission.EDIT_COMMISSIONS, validate=_validate_commission,
)

REGISTRY_ROUTERS = [
    ("/drivers", drivers_router, "Drivers"),
    ("/vehicles", vehicles_router, "Vehicles"),
    ("/lines", lines_router, "Lines"),
    ("/routes", routes_router, "Routes"),
    ("/agencies", agencies_router, "Agencies"),
    ("/clients", clients_router, "Clients"),
    ("/suppliers", suppliers_router, "Suppliers"),
    ("/expense-types", expense_types_router, "Expense types"),
    ("/commission-rules", commissions_router, "Commission rules"),
]
