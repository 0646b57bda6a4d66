"""
JSON backup: full export, transactional import and business-data reset
"""
from datetime import date, datetime
from pathlib import Path
from typing import Optional
import json
import logging

from sqlalchemy import Date, DateTime
from sqlalchemy.exc import StatementError
from sqlalchemy.orm import Session

from ..config import settings
from .. import models  # noqa: F401  (registers every table)
from ..database import Base
from ..errors import BusinessRuleError
from ..models.user import User
from ..utils.serialize import model_to_dict

logger = logging.getLogger(__name__)

# Children after parents so that inserts respect foreign keys
TABLE_ORDER = [
    "users",
    "drivers",
    "vehicles",
    "lines",
    "routes",
    "agencies",
    "clients",
    "suppliers",
    "expense_types",
    "commission_rules",
    "route_cash",
    "agency_cash",
    "daily_closes",
    "fuel_entries",
    "general_expenses",
    "tourism_services",
    "driver_ledger",
    "audit_logs",
]


def _models_by_table() -> dict:
    return {mapper.class_.__tablename__: mapper.class_ for mapper in Base.registry.mappers}


def export_backup(db: Session) -> dict:
    by_table = _models_by_table()
    tables = {}
    for name in TABLE_ORDER:
        model = by_table[name]
        rows = db.query(model).order_by(model.id).all()
        tables[name] = [model_to_dict(row) for row in rows]
    return {
        "app": settings.APP_NAME,
        "company": settings.COMPANY_NAME,
        "version": settings.APP_VERSION,
        "exported_at": datetime.now().isoformat(),
        "tables": tables,
    }


def _parse_row(model, row: dict) -> dict:
    """Convert ISO strings back to date/datetime for the matching columns."""
    columns = {c.name: c for c in model.__table__.columns}
    unknown = set(row) - set(columns)
    if unknown:
        raise BusinessRuleError(
            f"Unknown columns for {model.__tablename__}: {', '.join(sorted(unknown))}"
        )
    parsed = {}
    for key, value in row.items():
        column_type = columns[key].type
        try:
            if isinstance(value, str) and isinstance(column_type, DateTime):
                value = datetime.fromisoformat(value)
            elif isinstance(value, str) and isinstance(column_type, Date):
                value = date.fromisoformat(value)
        except ValueError:
            raise BusinessRuleError(f"Invalid value for {model.__tablename__}.{key}: {value!r}")
        parsed[key] = value
    return parsed


def import_backup(db: Session, payload: dict) -> dict:
    """
    Replace every table with the payload's content.

    The caller commits; any error raised here leaves the database untouched
    once the session is rolled back.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("tables"), dict):
        raise BusinessRuleError("Malformed backup: expected an object with a 'tables' mapping")

    by_table = _models_by_table()
    unknown = set(payload["tables"]) - set(TABLE_ORDER)
    if unknown:
        raise BusinessRuleError(f"Unknown tables in backup: {', '.join(sorted(unknown))}")

    tables = payload["tables"]
    for name, rows in tables.items():
        if not isinstance(rows, list):
            raise BusinessRuleError(f"Table {name} must be a list of rows")
    if "users" in tables and not any(row.get("is_active") and row.get("role") == "ADMIN"
                                     for row in tables["users"] if isinstance(row, dict)):
        raise BusinessRuleError("Backup must contain at least one active administrator")

    for name in reversed(TABLE_ORDER):
        if name in tables:
            db.query(by_table[name]).delete()
    db.flush()

    counts = {}
    for name in TABLE_ORDER:
        if name not in tables:
            continue
        rows = tables[name]
        model = by_table[name]
        for row in rows:
            if not isinstance(row, dict):
                raise BusinessRuleError(f"Rows of {name} must be objects")
            db.add(model(**_parse_row(model, row)))
        try:
            db.flush()
        except StatementError as e:
            logger.warning("[BACKUP] Import rejected at table %s: %s", name, e.orig)
            raise BusinessRuleError(f"Invalid rows in table {name}: {e.orig}")
        counts[name] = len(rows)

    logger.info("[BACKUP] Imported %d tables (%d rows)", len(counts), sum(counts.values()))
    return counts


def reset_business_data(db: Session) -> int:
    """Delete everything except users."""
    by_table = _models_by_table()
    removed = 0
    for name in reversed(TABLE_ORDER):
        if by_table[name] is User:
            continue
        removed += db.query(by_table[name]).delete()
    logger.warning("[BACKUP] Business data reset (%d rows removed)", removed)
    return removed


def write_backup_file(db: Session, directory: Optional[Path] = None, label: str = "backup") -> Path:
    directory = Path(directory or settings.BACKUP_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"onnibox_{label}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(export_backup(db), fh, ensure_ascii=False, indent=2)
    logger.info("[BACKUP] Written %s", path)
    return path


def read_backup_file(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)
