"""
Lookups shared by routers and services
"""
from sqlalchemy.orm import Session

from ..errors import NotFoundError, BusinessRuleError, ConflictError


def get_or_404(db: Session, model, entity_id, label: str):
    obj = db.get(model, entity_id)
    if obj is None:
        raise NotFoundError(label, entity_id)
    return obj


def require_reference(db: Session, model, entity_id, label: str):
    """Referenced id in a payload must exist (400 otherwise)."""
    if entity_id is None:
        raise BusinessRuleError(f"{label} is required")
    obj = db.get(model, entity_id)
    if obj is None:
        raise BusinessRuleError(f"{label} {entity_id} does not exist")
    return obj


def ensure_not_referenced(db: Session, obj, label: str) -> None:
    """Rows pointing at ``obj`` through a foreign key block its deletion (409)."""
    table = obj.__table__
    for other in table.metadata.sorted_tables:
        for fk in other.foreign_keys:
            if fk.column.table is not table:
                continue
            count = db.query(other).filter(fk.parent == getattr(obj, fk.column.key)).count()
            if count:
                raise ConflictError(
                    f"{label} {obj.id} is still referenced by {count} {other.name} row(s); deactivate it instead"
                )
