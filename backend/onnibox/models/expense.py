"""
General expense (accounts payable) model
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class PaymentMethod:
    CASH = "CASH"
    CARD = "CARD"
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    TRANSFER = "TRANSFER"
    PIX = "PIX"
    BOLETO = "BOLETO"

    GENERAL = [CASH, CREDIT, DEBIT, TRANSFER, PIX, BOLETO]
    FUEL = [CASH, CARD, CREDIT]


class ExpenseStatus:
    PAID = "PAID"
    PENDING = "PENDING"


class GeneralExpense(Base):
    __tablename__ = "general_expenses"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)  # due date or payment date
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    type_id = Column(Integer, ForeignKey("expense_types.id"), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    payment_method = Column(String, default=PaymentMethod.TRANSFER)
    status = Column(String, default=ExpenseStatus.PENDING)
    paid_at = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    expense_type = relationship("ExpenseType")
    supplier = relationship("Supplier")

    def __repr__(self):
        return f"<GeneralExpense(id={self.id}, amount={self.amount}, status='{self.status}')>"
