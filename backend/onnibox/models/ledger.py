"""
Driver running-ledger model
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class LedgerType:
    DEBIT = "DEBIT"  # driver owes the company
    CREDIT = "CREDIT"  # company owes the driver / debt paid


# Allowed categories per entry type
LEDGER_CATEGORIES = {
    LedgerType.DEBIT: ["SHORTAGE", "ADVANCE"],
    LedgerType.CREDIT: ["PAYMENT", "BONUS", "REFUND"],
}


class DriverLedgerEntry(Base):
    __tablename__ = "driver_ledger"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    driver = relationship("Driver")
