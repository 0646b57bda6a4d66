"""
Daily cash models: route cash bags, agency transfers and the day lock
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class CashStatus:
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class RouteCash(Base):
    """Cash handed over by a driver for one route departure"""

    __tablename__ = "route_cash"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    passengers = Column(Integer, default=0)

    # Tickets sold
    revenue_informed = Column(Float, default=0.0)
    # Expenses paid with money taken from the bag: [{type_id, amount, note}]
    expenses = Column(JSON, default=list)
    cash_expenses = Column(Float, default=0.0)
    net_cash_expected = Column(Float, default=0.0)

    # Physical money handed over
    cash_handed = Column(Float, default=0.0)
    diff = Column(Float, default=0.0)

    notes = Column(Text, nullable=True)
    status = Column(String, default=CashStatus.OPEN)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    route = relationship("RouteDef")
    driver = relationship("Driver")
    vehicle = relationship("Vehicle")

    def __repr__(self):
        return f"<RouteCash(id={self.id}, date={self.date}, diff={self.diff})>"


class AgencyCash(Base):
    """Sales reported by an agency and the money actually received"""

    __tablename__ = "agency_cash"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    agency_id = Column(Integer, ForeignKey("agencies.id"), nullable=False)

    value_informed = Column(Float, default=0.0)
    value_received = Column(Float, default=0.0)
    expenses = Column(JSON, default=list)
    expenses_total = Column(Float, default=0.0)

    # Commission percentage snapshotted at save time
    commission_pct = Column(Float, default=0.0)
    commission_value = Column(Float, default=0.0)
    net_expected = Column(Float, default=0.0)
    diff = Column(Float, default=0.0)

    notes = Column(Text, nullable=True)
    status = Column(String, default=CashStatus.OPEN)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    agency = relationship("Agency")

    def __repr__(self):
        return f"<AgencyCash(id={self.id}, date={self.date}, diff={self.diff})>"


class DailyClose(Base):
    """Authoritative snapshot of a closed day; its presence locks the date"""

    __tablename__ = "daily_closes"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)

    total_route_revenue = Column(Float, default=0.0)
    total_agency_revenue = Column(Float, default=0.0)
    total_expenses = Column(Float, default=0.0)  # route bag expenses
    total_agency_expenses = Column(Float, default=0.0)
    total_commissions = Column(Float, default=0.0)
    net_result = Column(Float, default=0.0)  # cash handed + received
    total_diff = Column(Float, default=0.0)

    notes = Column(Text, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=False)
    closed_by = Column(String, nullable=True)

    def __repr__(self):
        return f"<DailyClose(date={self.date}, net={self.net_result})>"
