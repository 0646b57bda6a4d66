"""
API endpoints for authentication
"""
from datetime import timedelta
from typing import List
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from pydantic import BaseModel
from ..database import get_db
from ..models.user import User
from ..utils.auth import authenticate_user, create_access_token, get_current_active_user
from ..utils.permissions import role_label, permissions_for
from ..config import settings

router = APIRouter()

logger = logging.getLogger(__name__)


class Token(BaseModel):
    access_token: str
    token_type: str


class CurrentUser(BaseModel):
    id: int
    email: str
    name: str
    role: str
    role_label: str
    permissions: List[str]


@router.post("/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Log in with e-mail (``username`` field) and password, get a bearer token
    """
    user = authenticate_user(db, form_data.username, form_data.password)

    if not user:
        logger.warning("[AUTH] Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect e-mail or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.email, "role": user.role}, expires_delta=access_token_expires
    )
    logger.info("[AUTH] %s logged in", user.email)

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=CurrentUser)
async def me(current_user: User = Depends(get_current_active_user)):
    """Profile of the logged user with role label and permissions"""
    return {
        "id": current_user.id,
        "email": current_user.email,
        "name": current_user.name,
        "role": current_user.role,
        "role_label": role_label(current_user.role),
        "permissions": permissions_for(current_user.role),
    }
