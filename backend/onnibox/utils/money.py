"""
Money and date helpers shared by every financial computation
"""
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Iterable, Tuple

CENT = Decimal("0.01")

# Differences inside this band are treated as "conference OK"
DIFF_TOLERANCE = 0.1


def money(value) -> float:
    """Round to cents with banker's rounding (0.1 + 0.2 == 0.3)."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_EVEN))


def money_sum(values: Iterable) -> float:
    total = 0.0
    for value in values:
        total = money(total + (value or 0))
    return total


def expenses_total(expenses) -> float:
    """Sum of an embedded expense list ({type_id, amount, note} items)."""
    return money_sum((e.get("amount") if isinstance(e, dict) else e.amount) for e in (expenses or []))


def percent_of(value, percentage) -> float:
    return money((value or 0) * (percentage or 0) / 100)


def format_date_display(day) -> str:
    """YYYY-MM-DD -> DD/MM/YYYY without timezone conversion."""
    if not day:
        return "-"
    if isinstance(day, date):
        return day.strftime("%d/%m/%Y")
    year, month, dd = str(day).split("-")
    return f"{dd}/{month}/{year}"


def diff_label(diff: float) -> str:
    if diff < -DIFF_TOLERANCE:
        return "FALTA DE CAIXA"
    if diff > DIFF_TOLERANCE:
        return "SOBRA DE CAIXA"
    return "CONFERÊNCIA OK"


def month_bounds(today: date) -> Tuple[date, date]:
    """First and last day of the month of ``today``."""
    first = today.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)


def previous_period(start: date, end: date) -> Tuple[date, date]:
    """Range of the same length that ends the day before ``start``."""
    days = (end - start).days + 1
    prev_end = start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=days - 1)
    return prev_start, prev_end


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
