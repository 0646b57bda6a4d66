"""
Daily closing engine.

``build_day_report`` aggregates a date from the stored entries; ``close_day``
persists that aggregation as a DailyClose row, which then locks the date for
every cash-affecting write (see ``services.cash.ensure_day_open``).
"""
from datetime import date, datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..errors import BusinessRuleError, ConflictError, NotFoundError
from ..models.audit import AuditAction
from ..models.cash import RouteCash, AgencyCash, DailyClose, CashStatus
from ..models.expense import GeneralExpense, PaymentMethod
from ..models.tourism import TourismService, TourismStatus
from ..utils.money import money, money_sum, expenses_total, percent_of, diff_label
from ..utils.serialize import model_to_dict
from . import audit
from .cash import agency_commission_pct, compute_agency_cash

logger = logging.getLogger(__name__)


def _agency_figures(db: Session, entry: AgencyCash) -> dict:
    """Commission, expenses and diff of an agency entry as the closing sees it."""
    if entry.status == CashStatus.CLOSED:
        pct = entry.commission_pct or 0.0
    else:
        pct = agency_commission_pct(db, entry.agency_id)
    commission = percent_of(entry.value_informed, pct)
    expenses = expenses_total(entry.expenses)
    expected = money(entry.value_informed - commission - expenses)
    return {
        "commission_pct": pct,
        "commission_value": commission,
        "expenses_total": expenses,
        "net_expected": expected,
        "diff": money(entry.value_received - expected),
    }


def build_day_report(db: Session, day: date) -> dict:
    routes = db.query(RouteCash).filter(RouteCash.date == day).order_by(RouteCash.id).all()
    agencies = db.query(AgencyCash).filter(AgencyCash.date == day).order_by(AgencyCash.id).all()
    daily_close = db.query(DailyClose).filter(DailyClose.date == day).first()

    agency_rows = []
    for entry in agencies:
        row = model_to_dict(entry)
        row.update(_agency_figures(db, entry))
        agency_rows.append(row)

    total_route_revenue = money_sum(r.revenue_informed for r in routes)
    total_agency_revenue = money_sum(a.value_informed for a in agencies)
    total_diff = money(
        money_sum(r.diff for r in routes) + money_sum(a["diff"] for a in agency_rows)
    )

    tourism = db.query(TourismService).filter(
        TourismService.departure_date == day,
        TourismService.status != TourismStatus.CANCELED,
    ).all()
    cash_general = db.query(GeneralExpense).filter(
        GeneralExpense.date == day,
        GeneralExpense.payment_method == PaymentMethod.CASH,
    ).all()

    return {
        "date": day,
        "routes": [model_to_dict(r) for r in routes],
        "agencies": agency_rows,
        "total_route_revenue": total_route_revenue,
        "total_agency_revenue": total_agency_revenue,
        "total_revenue": money(total_route_revenue + total_agency_revenue),
        "total_expenses": money_sum(r.cash_expenses for r in routes),
        "total_agency_expenses": money_sum(a["expenses_total"] for a in agency_rows),
        "total_commissions": money_sum(a["commission_value"] for a in agency_rows),
        "net_cash": money(
            money_sum(r.cash_handed for r in routes) + money_sum(a.value_received for a in agencies)
        ),
        "total_diff": total_diff,
        "status_label": diff_label(total_diff),
        "pending_count": (
            sum(1 for r in routes if r.status == CashStatus.OPEN)
            + sum(1 for a in agencies if a.status == CashStatus.OPEN)
        ),
        "tourism_revenue": money_sum(t.contract_value for t in tourism),
        "tourism_expenses": money_sum(expenses_total(t.expenses) for t in tourism),
        "cash_general_expenses": money_sum(e.amount for e in cash_general),
        "is_closed": daily_close is not None,
        "closed_at": daily_close.closed_at if daily_close else None,
        "closed_by": daily_close.closed_by if daily_close else None,
    }


def close_day(db: Session, user, day: date, notes: Optional[str] = None) -> DailyClose:
    """
    Lock ``day``: snapshot the totals and force-close every OPEN entry.

    Runs inside the caller's transaction; nothing is written until the caller
    commits, so any error leaves the day untouched.
    """
    if day > date.today():
        raise BusinessRuleError("Closing a future date is not allowed")
    if db.query(DailyClose).filter(DailyClose.date == day).first():
        raise ConflictError(f"Day {day.isoformat()} is already closed")

    report = build_day_report(db, day)

    close = DailyClose(
        date=day,
        total_route_revenue=report["total_route_revenue"],
        total_agency_revenue=report["total_agency_revenue"],
        total_expenses=report["total_expenses"],
        total_agency_expenses=report["total_agency_expenses"],
        total_commissions=report["total_commissions"],
        net_result=report["net_cash"],
        total_diff=report["total_diff"],
        notes=notes,
        closed_at=datetime.now(),
        closed_by=getattr(user, "name", None),
    )

    forced = 0
    for entry in db.query(RouteCash).filter(RouteCash.date == day, RouteCash.status == CashStatus.OPEN).all():
        entry.status = CashStatus.CLOSED
        forced += 1
    for entry in db.query(AgencyCash).filter(AgencyCash.date == day, AgencyCash.status == CashStatus.OPEN).all():
        compute_agency_cash(entry, agency_commission_pct(db, entry.agency_id))
        entry.status = CashStatus.CLOSED
        forced += 1

    db.add(close)
    db.flush()
    audit.record(
        db, user, AuditAction.CLOSE, "DailyClose", day.isoformat(),
        f"Day closed: net {close.net_result:.2f}, diff {close.total_diff:.2f}, {forced} entries force-closed",
        snapshot=close,
    )
    logger.info("[CLOSE] Day %s closed by %s (net=%.2f diff=%.2f forced=%d)",
                day, close.closed_by, close.net_result, close.total_diff, forced)
    return close


def reopen_day(db: Session, user, day: date, reason: Optional[str] = None) -> None:
    """Remove the lock of ``day``; entries keep their individual CLOSED status."""
    close = db.query(DailyClose).filter(DailyClose.date == day).first()
    if close is None:
        raise NotFoundError("Daily close", day.isoformat())

    audit.record(
        db, user, AuditAction.REOPEN, "DailyClose", day.isoformat(),
        f"Day reopened: {reason}" if reason else "Day reopened",
        previous=close,
    )
    db.delete(close)
    logger.info("[REOPEN] Day %s reopened by %s", day, getattr(user, "name", "system"))


def list_closes(db: Session, start: Optional[date] = None, end: Optional[date] = None):
    query = db.query(DailyClose)
    if start:
        query = query.filter(DailyClose.date >= start)
    if end:
        query = query.filter(DailyClose.date <= end)
    return query.order_by(DailyClose.date.desc()).all()
