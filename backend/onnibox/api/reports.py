"""
API endpoints for management reports and the dashboard
"""
from datetime import date
from typing import Optional, Tuple
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..errors import BusinessRuleError
from ..models.user import User
from ..services import reports as report_service
from ..utils.auth import get_current_active_user
from ..utils.money import month_bounds
from ..utils.permissions import Permission, require_permission, can

router = APIRouter()


def _range(start: Optional[date], end: Optional[date]) -> Tuple[date, date]:
    """Defaults to the current month"""
    first, last = month_bounds(date.today())
    start = start or first
    end = end or last
    if end < start:
        raise BusinessRuleError("End date cannot be before start date")
    return start, end


@router.get("/reports")
async def management_report(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db)
):
    """DRE metrics with previous-period comparison, fleet, lines and insights"""
    start, end = _range(start, end)
    return report_service.full_report(db, start, end)


@router.get("/reports/financial")
async def financial(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db)
):
    start, end = _range(start, end)
    return report_service.financial_metrics(db, start, end)


@router.get("/reports/fleet")
async def fleet(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db)
):
    start, end = _range(start, end)
    return report_service.fleet_profitability(db, start, end)


@router.get("/reports/lines")
async def lines(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db)
):
    start, end = _range(start, end)
    return report_service.line_performance(db, start, end)


@router.get("/dashboard")
async def dashboard(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Full dashboard, or the operational view for roles without access to it"""
    if not can(current_user, Permission.VIEW_DASHBOARD_FULL):
        return report_service.operational_dashboard(db)
    start, end = _range(start, end)
    return report_service.dashboard(db, start, end)
