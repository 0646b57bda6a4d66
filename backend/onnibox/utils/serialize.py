"""
Row <-> plain dict conversion used by audit snapshots and backups
"""
from datetime import date, datetime
import json


def to_jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def model_to_dict(obj, exclude=()) -> dict:
    """Column values of a mapped instance, dates as ISO strings."""
    return {
        column.name: to_jsonable(getattr(obj, column.name))
        for column in obj.__table__.columns
        if column.name not in exclude
    }


def dump_snapshot(obj) -> str | None:
    if obj is None or isinstance(obj, str):
        return obj
    data = obj if isinstance(obj, dict) else model_to_dict(obj, exclude=("hashed_password",))
    return json.dumps(data, ensure_ascii=False, default=str)
