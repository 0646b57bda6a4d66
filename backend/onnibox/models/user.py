"""
User model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from ..database import Base


class UserRole:
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    FINANCIAL = "FINANCIAL"
    OPERATOR = "OPERATOR"
    AUDITOR = "AUDITOR"

    ALL = [ADMIN, MANAGER, FINANCIAL, OPERATOR, AUDITOR]


class User(Base):
    """System user"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Authentication
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)

    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.OPERATOR)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User(email='{self.email}', role='{self.role}')>"
