"""
Audit trail model
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from ..database import Base


class AuditAction:
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CLOSE = "CLOSE"
    REOPEN = "REOPEN"

    ALL = [CREATE, UPDATE, DELETE, CLOSE, REOPEN]


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=datetime.now, index=True)

    user_id = Column(Integer, nullable=True)
    user_name = Column(String, nullable=False, default="system")
    user_role = Column(String, nullable=True)

    action = Column(String, nullable=False)
    entity = Column(String, nullable=False, index=True)
    entity_id = Column(String, nullable=True)
    details = Column(Text, nullable=True)

    # JSON text of the record after / before the change
    snapshot = Column(Text, nullable=True)
    previous_snapshot = Column(Text, nullable=True)

    def __repr__(self):
        return f"<AuditLog({self.action} {self.entity}#{self.entity_id} by {self.user_name})>"
