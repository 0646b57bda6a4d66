"""
Route cash and agency cash reconciliation.

Every figure goes through ``money()`` so that stored totals match what the
closing engine recomputes later.
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..errors import BusinessRuleError, DayLockedError, RecordLockedError
from ..models.audit import AuditAction
from ..models.cash import RouteCash, AgencyCash, DailyClose, CashStatus
from ..models.registry import (
    RouteDef, Driver, Vehicle, Agency, CommissionRule, CommissionTarget,
)
from ..utils.money import money, money_sum, expenses_total, percent_of
from ..utils.serialize import model_to_dict
from . import audit
from .refs import require_reference

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Day lock
# ---------------------------------------------------------------------------

def is_day_closed(db: Session, day: date) -> bool:
    return db.query(DailyClose.id).filter(DailyClose.date == day).first() is not None


def ensure_day_open(db: Session, *days: date) -> None:
    for day in days:
        if day is not None and is_day_closed(db, day):
            logger.warning("[LOCK] Write rejected for closed day %s", day)
            raise DayLockedError(day)


def ensure_not_future(day: date, allow_future: bool = False) -> None:
    if day > date.today() and not allow_future:
        raise BusinessRuleError(
            f"Date {day.isoformat()} is in the future; resend with allow_future=true to confirm"
        )


def clean_expenses(expenses) -> list:
    """Normalise an embedded expense list to plain dicts with rounded amounts."""
    cleaned = []
    for item in expenses or []:
        if not isinstance(item, dict):
            item = item.model_dump()
        amount = money(item.get("amount"))
        if amount < 0:
            raise BusinessRuleError("Expense amounts cannot be negative")
        cleaned.append({
            "type_id": item.get("type_id"),
            "amount": amount,
            "note": item.get("note") or "",
        })
    return cleaned


# ---------------------------------------------------------------------------
# Commission lookup
# ---------------------------------------------------------------------------

def agency_commission_pct(db: Session, agency_id: int) -> float:
    """Percentage of the active AGENCY rule for the agency, 0 when none."""
    rule = db.query(CommissionRule).filter(
        CommissionRule.target_type == CommissionTarget.AGENCY,
        CommissionRule.target_id == agency_id,
        CommissionRule.active == True,  # noqa: E712
    ).order_by(CommissionRule.id.desc()).first()
    return float(rule.percentage) if rule else 0.0


# ---------------------------------------------------------------------------
# Calculations
# ---------------------------------------------------------------------------

def compute_route_cash(entry: RouteCash) -> RouteCash:
    entry.revenue_informed = money(entry.revenue_informed)
    entry.cash_handed = money(entry.cash_handed)
    entry.cash_expenses = expenses_total(entry.expenses)
    entry.net_cash_expected = money(entry.revenue_informed - entry.cash_expenses)
    entry.diff = money(entry.cash_handed - entry.net_cash_expected)
    return entry


def compute_agency_cash(entry: AgencyCash, commission_pct: float) -> AgencyCash:
    entry.value_informed = money(entry.value_informed)
    entry.value_received = money(entry.value_received)
    entry.commission_pct = float(commission_pct or 0)
    entry.commission_value = percent_of(entry.value_informed, entry.commission_pct)
    entry.expenses_total = expenses_total(entry.expenses)
    entry.net_expected = money(entry.value_informed - entry.commission_value - entry.expenses_total)
    entry.diff = money(entry.value_received - entry.net_expected)
    return entry


def summarize(entries, fields) -> dict:
    return {name: money_sum(getattr(e, attr) for e in entries) for name, attr in fields.items()}


# ---------------------------------------------------------------------------
# Route cash
# ---------------------------------------------------------------------------

ROUTE_SUMMARY_FIELDS = {
    "revenue": "revenue_informed",
    "expenses": "cash_expenses",
    "handed": "cash_handed",
    "diff": "diff",
}


def list_route_cash(db: Session, start: Optional[date] = None, end: Optional[date] = None,
                    line_id: Optional[int] = None):
    query = db.query(RouteCash)
    if start:
        query = query.filter(RouteCash.date >= start)
    if end:
        query = query.filter(RouteCash.date <= end)
    if line_id:
        query = query.join(RouteDef, RouteCash.route_id == RouteDef.id).filter(RouteDef.line_id == line_id)
    entries = query.order_by(RouteCash.date.desc(), RouteCash.id.desc()).all()
    return entries, summarize(entries, ROUTE_SUMMARY_FIELDS)


def _validate_route_refs(db: Session, data: dict) -> None:
    require_reference(db, RouteDef, data.get("route_id"), "Route")
    require_reference(db, Driver, data.get("driver_id"), "Driver")
    require_reference(db, Vehicle, data.get("vehicle_id"), "Vehicle")


def create_route_cash(db: Session, user, data: dict, allow_future: bool = False) -> RouteCash:
    ensure_not_future(data["date"], allow_future)
    ensure_day_open(db, data["date"])
    _validate_route_refs(db, data)

    entry = RouteCash(**{**data, "expenses": clean_expenses(data.get("expenses"))})
    entry.status = CashStatus.OPEN
    compute_route_cash(entry)

    db.add(entry)
    db.flush()
    audit.record(db, user, AuditAction.CREATE, "RouteCash", entry.id,
                 f"Route cash {entry.date.isoformat()} diff {entry.diff:.2f}", snapshot=entry)
    logger.info("[CASH] Route cash %s created for %s", entry.id, entry.date)
    return entry


def update_route_cash(db: Session, user, entry: RouteCash, data: dict, allow_future: bool = False) -> RouteCash:
    if entry.status == CashStatus.CLOSED:
        raise RecordLockedError("Entry already checked; reopen it before editing")
    new_date = data.get("date", entry.date)
    ensure_not_future(new_date, allow_future)
    ensure_day_open(db, entry.date, new_date)
    _validate_route_refs(db, {
        "route_id": data.get("route_id", entry.route_id),
        "driver_id": data.get("driver_id", entry.driver_id),
        "vehicle_id": data.get("vehicle_id", entry.vehicle_id),
    })

    previous = model_to_dict(entry)
    for field, value in data.items():
        if field == "expenses":
            value = clean_expenses(value)
        setattr(entry, field, value)
    compute_route_cash(entry)

    db.flush()
    audit.record(db, user, AuditAction.UPDATE, "RouteCash", entry.id,
                 f"Route cash {entry.date.isoformat()} updated", snapshot=entry, previous=previous)
    return entry


def set_route_cash_status(db: Session, user, entry: RouteCash, status: str) -> RouteCash:
    """Individual conference (CLOSED) or reopen (OPEN) of a single entry."""
    ensure_day_open(db, entry.date)
    previous = model_to_dict(entry)
    entry.status = status
    action = AuditAction.UPDATE if status == CashStatus.CLOSED else AuditAction.REOPEN
    db.flush()
    audit.record(db, user, action, "RouteCash", entry.id,
                 "Checked" if status == CashStatus.CLOSED else "Reopened",
                 snapshot=entry, previous=previous)
    return entry


def delete_route_cash(db: Session, user, entry: RouteCash) -> None:
    if entry.status == CashStatus.CLOSED:
        raise RecordLockedError("Entry already checked; reopen it before deleting")
    ensure_day_open(db, entry.date)
    audit.record(db, user, AuditAction.DELETE, "RouteCash", entry.id,
                 f"Route cash {entry.date.isoformat()} deleted", previous=entry)
    db.delete(entry)


# ---------------------------------------------------------------------------
# Agency cash
# ---------------------------------------------------------------------------

AGENCY_SUMMARY_FIELDS = {
    "informed": "value_informed",
    "received": "value_received",
    "commissions": "commission_value",
    "expenses": "expenses_total",
    "diff": "diff",
}


def list_agency_cash(db: Session, start: Optional[date] = None, end: Optional[date] = None,
                     agency_id: Optional[int] = None):
    query = db.query(AgencyCash)
    if start:
        query = query.filter(AgencyCash.date >= start)
    if end:
        query = query.filter(AgencyCash.date <= end)
    if agency_id:
        query = query.filter(AgencyCash.agency_id == agency_id)
    entries = query.order_by(AgencyCash.date.desc(), AgencyCash.id.desc()).all()
    return entries, summarize(entries, AGENCY_SUMMARY_FIELDS)


def create_agency_cash(db: Session, user, data: dict, allow_future: bool = False) -> AgencyCash:
    ensure_not_future(data["date"], allow_future)
    ensure_day_open(db, data["date"])
    require_reference(db, Agency, data.get("agency_id"), "Agency")

    entry = AgencyCash(**{**data, "expenses": clean_expenses(data.get("expenses"))})
    entry.status = CashStatus.OPEN
    compute_agency_cash(entry, agency_commission_pct(db, entry.agency_id))

    db.add(entry)
    db.flush()
    audit.record(db, user, AuditAction.CREATE, "AgencyCash", entry.id,
                 f"Agency cash {entry.date.isoformat()} diff {entry.diff:.2f}", snapshot=entry)
    logger.info("[CASH] Agency cash %s created for %s", entry.id, entry.date)
    return entry


def update_agency_cash(db: Session, user, entry: AgencyCash, data: dict, allow_future: bool = False) -> AgencyCash:
    if entry.status == CashStatus.CLOSED:
        raise RecordLockedError("Entry already checked; reopen it before editing")
    new_date = data.get("date", entry.date)
    ensure_not_future(new_date, allow_future)
    ensure_day_open(db, entry.date, new_date)
    require_reference(db, Agency, data.get("agency_id", entry.agency_id), "Agency")

    previous = model_to_dict(entry)
    for field, value in data.items():
        if field == "expenses":
            value = clean_expenses(value)
        setattr(entry, field, value)
    compute_agency_cash(entry, agency_commission_pct(db, entry.agency_id))

    db.flush()
    audit.record(db, user, AuditAction.UPDATE, "AgencyCash", entry.id,
                 f"Agency cash {entry.date.isoformat()} updated", snapshot=entry, previous=previous)
    return entry


def set_agency_cash_status(db: Session, user, entry: AgencyCash, status: str) -> AgencyCash:
    ensure_day_open(db, entry.date)
    previous = model_to_dict(entry)
    if status == CashStatus.CLOSED:
        # freeze the commission in force at conference time
        compute_agency_cash(entry, agency_commission_pct(db, entry.agency_id))
    entry.status = status
    action = AuditAction.UPDATE if status == CashStatus.CLOSED else AuditAction.REOPEN
    db.flush()
    audit.record(db, user, action, "AgencyCash", entry.id,
                 "Checked" if status == CashStatus.CLOSED else "Reopened",
                 snapshot=entry, previous=previous)
    return entry


def delete_agency_cash(db: Session, user, entry: AgencyCash) -> None:
    if entry.status == CashStatus.CLOSED:
        raise RecordLockedError("Entry already checked; reopen it before deleting")
    ensure_day_open(db, entry.date)
    audit.record(db, user, AuditAction.DELETE, "AgencyCash", entry.id,
                 f"Agency cash {entry.date.isoformat()} deleted", previous=entry)
    db.delete(entry)
