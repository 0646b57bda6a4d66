"""
Role-based access: permission matrix and FastAPI guards
"""
import logging
from fastapi import Depends, HTTPException, status
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)


class Permission:
    VIEW_DASHBOARD_FULL = "view_dashboard_full"
    VIEW_REPORTS = "view_reports"
    MANAGE_FINANCIALS = "manage_financials"
    MANAGE_REGISTRIES = "manage_registries"
    CLOSE_BOX = "close_box"
    REOPEN_CASH = "reopen_cash"
    MANAGE_SYSTEM = "manage_system"
    DELETE_RECORDS = "delete_records"
    EDIT_COMMISSIONS = "edit_commissions"
    APPROVE_TOURISM = "approve_tourism"
    RECORD_ENTRIES = "record_entries"


# ADMIN is not listed: it holds every permission
PERMISSION_MATRIX = {
    Permission.VIEW_DASHBOARD_FULL: [UserRole.MANAGER, UserRole.AUDITOR],
    Permission.VIEW_REPORTS: [UserRole.MANAGER, UserRole.FINANCIAL, UserRole.AUDITOR],
    Permission.MANAGE_FINANCIALS: [UserRole.MANAGER, UserRole.FINANCIAL],
    Permission.MANAGE_REGISTRIES: [UserRole.MANAGER],
    Permission.CLOSE_BOX: [UserRole.MANAGER, UserRole.FINANCIAL],
    Permission.REOPEN_CASH: [UserRole.MANAGER],
    Permission.MANAGE_SYSTEM: [],
    Permission.DELETE_RECORDS: [UserRole.MANAGER],
    Permission.EDIT_COMMISSIONS: [],
    Permission.APPROVE_TOURISM: [UserRole.MANAGER, UserRole.FINANCIAL],
    Permission.RECORD_ENTRIES: [UserRole.MANAGER, UserRole.FINANCIAL, UserRole.OPERATOR],
}

ROLE_LABELS = {
    UserRole.ADMIN: "Administrador",
    UserRole.MANAGER: "Gestor de Frota",
    UserRole.FINANCIAL: "Financeiro",
    UserRole.OPERATOR: "Operador",
    UserRole.AUDITOR: "Auditor",
}


def can(user, permission: str) -> bool:
    """True when ``user`` (a User or a role string) holds ``permission``."""
    if user is None:
        return False
    role = user if isinstance(user, str) else user.role
    if role == UserRole.ADMIN:
        return True
    return role in PERMISSION_MATRIX.get(permission, [])


def role_label(role: str) -> str:
    return ROLE_LABELS.get(role, "Visitante")


def permissions_for(role: str) -> list:
    return [perm for perm in PERMISSION_MATRIX if can(role, perm)]


def require_permission(permission: str):
    """Dependency factory: resolves to the current user or answers 403"""
    from .auth import get_current_active_user

    async def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not can(current_user, permission):
            logger.warning("[AUTH] %s (%s) denied '%s'", current_user.email, current_user.role, permission)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{permission}' required"
            )
        return current_user

    return checker
