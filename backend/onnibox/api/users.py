"""
API endpoints for user management
"""
from datetime import datetime
from typing import List, Optional
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from ..database import get_db
from ..errors import BusinessRuleError, ConflictError
from ..models.audit import AuditAction
from ..models.user import User, UserRole
from ..services import audit
from ..services.refs import get_or_404
from ..utils.auth import get_password_hash
from ..utils.permissions import Permission, require_permission, role_label
from ..utils.serialize import model_to_dict

router = APIRouter()

logger = logging.getLogger(__name__)


class UserCreate(BaseModel):
    email: EmailStr
    name: str
    role: str = UserRole.OPERATOR
    password: str
    is_active: bool = True


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    role: Optional[str] = None
    # Empty keeps the current password
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    role_label: str = ""
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _to_response(user: User) -> UserResponse:
    response = UserResponse.model_validate(user)
    response.role_label = role_label(user.role)
    return response


def _check_role(role: str) -> None:
    if role not in UserRole.ALL:
        raise BusinessRuleError(f"Role must be one of {', '.join(UserRole.ALL)}")


def _check_email_free(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(User).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ConflictError(f"E-mail {email} is already in use")


def _is_last_admin(db: Session, user: User) -> bool:
    if user.role != UserRole.ADMIN or not user.is_active:
        return False
    others = db.query(User).filter(
        User.role == UserRole.ADMIN, User.is_active == True, User.id != user.id  # noqa: E712
    ).count()
    return others == 0


@router.get("/", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    """All users, active first"""
    users = db.query(User).order_by(User.is_active.desc(), User.name).all()
    return [_to_response(u) for u in users]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    _check_role(data.role)
    if not data.password:
        raise BusinessRuleError("Password is required for new users")
    _check_email_free(db, data.email)

    user = User(
        email=data.email.lower(),
        name=data.name,
        role=data.role,
        is_active=data.is_active,
        hashed_password=get_password_hash(data.password),
    )
    db.add(user)
    db.flush()
    audit.record(db, current_user, AuditAction.CREATE, "User", user.id, f"User {user.email} created", snapshot=user)
    db.commit()
    db.refresh(user)
    logger.info("[USERS] %s created %s (%s)", current_user.email, user.email, user.role)
    return _to_response(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    user = get_or_404(db, User, user_id, "User")
    previous = model_to_dict(user, exclude=("hashed_password",))

    if data.role is not None:
        _check_role(data.role)
        if data.role != UserRole.ADMIN and _is_last_admin(db, user):
            raise BusinessRuleError("The last active administrator cannot be demoted")
        user.role = data.role
    if data.email is not None:
        _check_email_free(db, data.email, exclude_id=user.id)
        user.email = data.email.lower()
    if data.name is not None:
        user.name = data.name
    if data.password:
        user.hashed_password = get_password_hash(data.password)

    db.flush()
    audit.record(db, current_user, AuditAction.UPDATE, "User", user.id, f"User {user.email} updated",
                 snapshot=user, previous=previous)
    db.commit()
    db.refresh(user)
    return _to_response(user)


@router.post("/{user_id}/toggle-active", response_model=UserResponse)
@router.delete("/{user_id}", response_model=UserResponse)
async def toggle_user(
    user_id: int,
    current_user: User = Depends(require_permission(Permission.MANAGE_SYSTEM)),
    db: Session = Depends(get_db)
):
    """Deactivate / reactivate; the last active administrator cannot be deactivated"""
    user = get_or_404(db, User, user_id, "User")
    if user.is_active and _is_last_admin(db, user):
        raise BusinessRuleError("The last active administrator cannot be deactivated")

    previous = model_to_dict(user, exclude=("hashed_password",))
    user.is_active = not user.is_active
    db.flush()
    audit.record(db, current_user, AuditAction.UPDATE, "User", user.id,
                 f"User {user.email} {'activated' if user.is_active else 'deactivated'}",
                 snapshot=user, previous=previous)
    db.commit()
    db.refresh(user)
    return _to_response(user)
