"""
Fuel log: validation, per-vehicle consumption enrichment and stats
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..errors import BusinessRuleError
from ..models.audit import AuditAction
from ..models.fuel import FuelEntry
from ..models.registry import Vehicle
from ..utils.money import money, money_sum
from ..utils.serialize import model_to_dict
from . import audit
from .cash import ensure_day_open
from .refs import require_reference

logger = logging.getLogger(__name__)


def last_known_mileage(db: Session, vehicle: Vehicle) -> float:
    query = db.query(FuelEntry).filter(FuelEntry.vehicle_id == vehicle.id)
    last = query.order_by(FuelEntry.date.desc(), FuelEntry.mileage.desc()).first()
    if last is not None:
        return last.mileage
    return vehicle.initial_mileage or 0.0


def _validate(db: Session, data: dict, allow_lower_mileage: bool = False, check_mileage: bool = True) -> None:
    if (data.get("amount") or 0) <= 0:
        raise BusinessRuleError("Fuel amount must be greater than zero")
    if (data.get("liters") or 0) <= 0:
        raise BusinessRuleError("Liters must be greater than zero")
    if (data.get("mileage") or 0) <= 0:
        raise BusinessRuleError("Mileage must be greater than zero")

    vehicle = require_reference(db, Vehicle, data.get("vehicle_id"), "Vehicle")
    # Only new fills are compared against the odometer history
    if not check_mileage:
        return
    last_km = last_known_mileage(db, vehicle)
    if data["mileage"] < last_km and not allow_lower_mileage:
        raise BusinessRuleError(
            f"Mileage {data['mileage']:.0f} is below the last known reading ({last_km:.0f}) of "
            f"{vehicle.plate}; resend with allow_lower_mileage=true to confirm"
        )


def create_fuel(db: Session, user, data: dict, allow_lower_mileage: bool = False) -> FuelEntry:
    ensure_day_open(db, data["date"])
    _validate(db, data, allow_lower_mileage)

    entry = FuelEntry(**data)
    entry.amount = money(entry.amount)
    db.add(entry)
    db.flush()
    audit.record(db, user, AuditAction.CREATE, "FuelEntry", entry.id,
                 f"Fuel {entry.liters:.2f} L / {entry.amount:.2f}", snapshot=entry)
    return entry


def update_fuel(db: Session, user, entry: FuelEntry, data: dict) -> FuelEntry:
    merged = {**model_to_dict(entry), **data}
    merged["date"] = data.get("date", entry.date)
    ensure_day_open(db, entry.date, merged["date"])
    _validate(db, merged, check_mileage=False)

    previous = model_to_dict(entry)
    for field, value in data.items():
        setattr(entry, field, value)
    entry.amount = money(entry.amount)
    db.flush()
    audit.record(db, user, AuditAction.UPDATE, "FuelEntry", entry.id, "Fuel entry updated",
                 snapshot=entry, previous=previous)
    return entry


def delete_fuel(db: Session, user, entry: FuelEntry) -> None:
    ensure_day_open(db, entry.date)
    audit.record(db, user, AuditAction.DELETE, "FuelEntry", entry.id, "Fuel entry deleted", previous=entry)
    db.delete(entry)


def enrich(entries, vehicles) -> list:
    """
    Consumption figures per entry.

    Entries are walked per vehicle in (date, mileage) order; the previous
    reading is the prior entry of the same vehicle or, for the first one, the
    vehicle's initial mileage when lower than the reading.
    """
    by_id = {v.id: v for v in vehicles}
    ordered = sorted(entries, key=lambda e: (e.vehicle_id, e.date, e.mileage or 0))

    result = []
    prev = None
    for entry in ordered:
        vehicle = by_id.get(entry.vehicle_id)
        row = model_to_dict(entry)
        row["vehicle_plate"] = vehicle.plate if vehicle else "???"
        row["vehicle_description"] = vehicle.description if vehicle else "Desconhecido"
        row["price_per_liter"] = round(entry.amount / entry.liters, 3) if entry.liters and entry.amount else None

        previous_mileage = None
        if prev is not None and prev.vehicle_id == entry.vehicle_id and prev.mileage:
            previous_mileage = prev.mileage
        if previous_mileage is None and vehicle and vehicle.initial_mileage and entry.mileage > vehicle.initial_mileage:
            previous_mileage = vehicle.initial_mileage

        dist = km_per_liter = cost_per_km = None
        if previous_mileage is not None and entry.mileage:
            traveled = entry.mileage - previous_mileage
            if traveled > 0:
                dist = traveled
                if entry.liters and entry.is_full_tank is not False:
                    km_per_liter = round(traveled / entry.liters, 3)
                    cost_per_km = round(entry.amount / traveled, 4)

        row.update({
            "previous_mileage": previous_mileage,
            "dist_traveled": dist,
            "km_per_liter": km_per_liter,
            "cost_per_km": cost_per_km,
        })
        result.append(row)
        prev = entry
    return result


def stats(rows) -> dict:
    total_spent = money_sum(r["amount"] for r in rows)
    total_liters = round(sum(r["liters"] or 0 for r in rows), 3)
    efficiency = [r["km_per_liter"] for r in rows if r["km_per_liter"] is not None]
    cost = [r["cost_per_km"] for r in rows if r["cost_per_km"] is not None]
    return {
        "total_spent": total_spent,
        "total_liters": total_liters,
        "avg_km_per_liter": round(sum(efficiency) / len(efficiency), 3) if efficiency else 0.0,
        "avg_price": round(total_spent / total_liters, 3) if total_liters else 0.0,
        "avg_cost_per_km": round(sum(cost) / len(cost), 4) if cost else 0.0,
    }


def list_fuel(db: Session, start: Optional[date] = None, end: Optional[date] = None,
              vehicle_id: Optional[int] = None) -> dict:
    """Enrich the whole history, then filter, so previous readings cross the range start."""
    entries = db.query(FuelEntry).all()
    rows = enrich(entries, db.query(Vehicle).all())
    rows = [
        r for r in rows
        if (vehicle_id is None or r["vehicle_id"] == vehicle_id)
        and (start is None or r["date"] >= start.isoformat())
        and (end is None or r["date"] <= end.isoformat())
    ]
    rows.sort(key=lambda r: (r["date"], r["id"]), reverse=True)
    return {"items": rows, "stats": stats(rows)}
