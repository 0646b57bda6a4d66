"""
Driver running ledger: balances and statements
"""
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..errors import BusinessRuleError
from ..models.audit import AuditAction
from ..models.ledger import DriverLedgerEntry, LedgerType, LEDGER_CATEGORIES
from ..models.registry import Driver
from ..utils.money import money, money_sum
from . import audit
from .refs import get_or_404, require_reference

logger = logging.getLogger(__name__)


def balance_of(entries) -> dict:
    credits = money_sum(e.amount for e in entries if e.type == LedgerType.CREDIT)
    debits = money_sum(e.amount for e in entries if e.type == LedgerType.DEBIT)
    return {"credits": credits, "debits": debits, "balance": money(credits - debits)}


def driver_balances(db: Session, q: Optional[str] = None) -> list:
    query = db.query(Driver).filter(Driver.active == True)  # noqa: E712
    if q:
        query = query.filter(Driver.name.ilike(f"%{q}%"))
    drivers = query.order_by(Driver.name).all()

    entries = db.query(DriverLedgerEntry).all()
    by_driver = {}
    for entry in entries:
        by_driver.setdefault(entry.driver_id, []).append(entry)

    rows = []
    for driver in drivers:
        own = by_driver.get(driver.id, [])
        row = {"driver_id": driver.id, "driver_name": driver.name, "entries": len(own)}
        row.update(balance_of(own))
        rows.append(row)
    return rows


def statement(db: Session, driver_id: int) -> dict:
    driver = get_or_404(db, Driver, driver_id, "Driver")
    entries = db.query(DriverLedgerEntry).filter(
        DriverLedgerEntry.driver_id == driver.id
    ).order_by(DriverLedgerEntry.date.desc(), DriverLedgerEntry.id.desc()).all()
    result = {"driver_id": driver.id, "driver_name": driver.name, "items": entries}
    result.update(balance_of(entries))
    return result


def add_entry(db: Session, user, data: dict) -> DriverLedgerEntry:
    driver = require_reference(db, Driver, data.get("driver_id"), "Driver")
    entry_type = data.get("type")
    if entry_type not in LEDGER_CATEGORIES:
        raise BusinessRuleError("Ledger type must be DEBIT or CREDIT")
    if data.get("category") not in LEDGER_CATEGORIES[entry_type]:
        raise BusinessRuleError(
            f"Category for {entry_type} must be one of {', '.join(LEDGER_CATEGORIES[entry_type])}"
        )
    if (data.get("amount") or 0) <= 0:
        raise BusinessRuleError("Amount must be greater than zero")
    if not (data.get("description") or "").strip():
        raise BusinessRuleError("Description is required")

    entry = DriverLedgerEntry(**data)
    entry.amount = money(entry.amount)
    db.add(entry)
    db.flush()
    audit.record(db, user, AuditAction.CREATE, "DriverLedger", entry.id,
                 f"{entry.type} {entry.category} {entry.amount:.2f} for {driver.name}", snapshot=entry)
    return entry


def delete_entry(db: Session, user, entry: DriverLedgerEntry) -> None:
    audit.record(db, user, AuditAction.DELETE, "DriverLedger", entry.id, "Ledger entry deleted", previous=entry)
    db.delete(entry)
