"""
API endpoints for general expenses (accounts payable)
"""
from datetime import date, datetime
from typing import List, Optional
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from ..database import get_db
from ..errors import BusinessRuleError
from ..models.audit import AuditAction
from ..models.expense import GeneralExpense, PaymentMethod, ExpenseStatus
from ..models.registry import ExpenseType, Supplier
from ..models.user import User
from ..services import audit
from ..services.cash import ensure_day_open
from ..services.refs import get_or_404, require_reference
from ..utils.money import money, money_sum
from ..utils.permissions import Permission, require_permission
from ..utils.serialize import model_to_dict

router = APIRouter()

logger = logging.getLogger(__name__)


class ExpenseIn(BaseModel):
    date: date
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    type_id: int
    supplier_id: Optional[int] = None
    payment_method: str = PaymentMethod.TRANSFER
    status: str = ExpenseStatus.PENDING
    paid_at: Optional[date] = None
    notes: Optional[str] = None


class ExpenseOut(BaseModel):
    id: int
    date: date
    description: str
    amount: float
    type_id: int
    supplier_id: Optional[int]
    payment_method: str
    status: str
    paid_at: Optional[date]
    notes: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseSummary(BaseModel):
    total: float
    paid: float
    pending: float


class ExpenseList(BaseModel):
    items: List[ExpenseOut]
    summary: ExpenseSummary


def _cash_lock(db: Session, method: str, *days) -> None:
    # Only cash payments move the physical till
    if method == PaymentMethod.CASH:
        ensure_day_open(db, *days)


def _apply(db: Session, expense: GeneralExpense, data: ExpenseIn) -> None:
    if data.payment_method not in PaymentMethod.GENERAL:
        raise BusinessRuleError(f"Payment method must be one of {', '.join(PaymentMethod.GENERAL)}")
    if data.status not in (ExpenseStatus.PAID, ExpenseStatus.PENDING):
        raise BusinessRuleError("Status must be PAID or PENDING")
    require_reference(db, ExpenseType, data.type_id, "Expense type")
    if data.supplier_id is not None:
        require_reference(db, Supplier, data.supplier_id, "Supplier")

    for field, value in data.model_dump().items():
        setattr(expense, field, value)
    expense.amount = money(expense.amount)
    if expense.status == ExpenseStatus.PAID:
        expense.paid_at = data.paid_at or data.date
    else:
        expense.paid_at = None


@router.get("/", response_model=ExpenseList)
async def list_expenses(
    start: Optional[date] = None,
    end: Optional[date] = None,
    type_id: Optional[int] = None,
    status: Optional[str] = None,
    supplier_id: Optional[int] = None,
    current_user: User = Depends(require_permission(Permission.MANAGE_FINANCIALS)),
    db: Session = Depends(get_db)
):
    query = db.query(GeneralExpense)
    if start:
        query = query.filter(GeneralExpense.date >= start)
    if end:
        query = query.filter(GeneralExpense.date <= end)
    if type_id:
        query = query.filter(GeneralExpense.type_id == type_id)
    if status:
        query = query.filter(GeneralExpense.status == status)
    if supplier_id:
        query = query.filter(GeneralExpense.supplier_id == supplier_id)
    items = query.order_by(GeneralExpense.date.desc(), GeneralExpense.id.desc()).all()

    return {
        "items": items,
        "summary": {
            "total": money_sum(e.amount for e in items),
            "paid": money_sum(e.amount for e in items if e.status == ExpenseStatus.PAID),
            "pending": money_sum(e.amount for e in items if e.status == ExpenseStatus.PENDING),
        },
    }


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: ExpenseIn,
    current_user: User = Depends(require_permission(Permission.MANAGE_FINANCIALS)),
    db: Session = Depends(get_db)
):
    _cash_lock(db, data.payment_method, data.date)
    expense = GeneralExpense()
    _apply(db, expense, data)
    db.add(expense)
    db.flush()
    audit.record(db, current_user, AuditAction.CREATE, "GeneralExpense", expense.id,
                 f"{expense.description} {expense.amount:.2f}", snapshot=expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.put("/{expense_id}", response_model=ExpenseOut)
async def update_expense(
    expense_id: int,
    data: ExpenseIn,
    current_user: User = Depends(require_permission(Permission.MANAGE_FINANCIALS)),
    db: Session = Depends(get_db)
):
    expense = get_or_404(db, GeneralExpense, expense_id, "Expense")
    _cash_lock(db, expense.payment_method, expense.date)
    _cash_lock(db, data.payment_method, data.date)

    previous = model_to_dict(expense)
    _apply(db, expense, data)
    db.flush()
    audit.record(db, current_user, AuditAction.UPDATE, "GeneralExpense", expense.id,
                 f"{expense.description} updated", snapshot=expense, previous=previous)
    db.commit()
    db.refresh(expense)
    return expense


@router.post("/{expense_id}/pay", response_model=ExpenseOut)
async def mark_paid(
    expense_id: int,
    current_user: User = Depends(require_permission(Permission.MANAGE_FINANCIALS)),
    db: Session = Depends(get_db)
):
    """Mark as paid today"""
    expense = get_or_404(db, GeneralExpense, expense_id, "Expense")
    if expense.status == ExpenseStatus.PAID:
        raise BusinessRuleError("Expense is already paid")
    _cash_lock(db, expense.payment_method, expense.date)

    previous = model_to_dict(expense)
    expense.status = ExpenseStatus.PAID
    expense.paid_at = date.today()
    db.flush()
    audit.record(db, current_user, AuditAction.UPDATE, "GeneralExpense", expense.id,
                 f"{expense.description} paid", snapshot=expense, previous=previous)
    db.commit()
    db.refresh(expense)
    logger.info("[EXPENSE] %s marked paid by %s", expense.id, current_user.email)
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_RECORDS)),
    db: Session = Depends(get_db)
):
    expense = get_or_404(db, GeneralExpense, expense_id, "Expense")
    _cash_lock(db, expense.payment_method, expense.date)
    audit.record(db, current_user, AuditAction.DELETE, "GeneralExpense", expense.id,
                 f"{expense.description} deleted", previous=expense)
    db.delete(expense)
    db.commit()
