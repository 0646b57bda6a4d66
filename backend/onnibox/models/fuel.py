"""
Fuel model
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class FuelEntry(Base):
    __tablename__ = "fuel_entries"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    amount = Column(Float, nullable=False)
    liters = Column(Float, nullable=False)
    mileage = Column(Float, nullable=False)
    # Tank filled to the top; partial fills do not produce consumption figures
    is_full_tank = Column(Boolean, default=True)
    payment_method = Column(String, default="CARD")  # CASH | CARD | CREDIT
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vehicle = relationship("Vehicle")

    def __repr__(self):
        return f"<FuelEntry(id={self.id}, vehicle={self.vehicle_id}, km={self.mileage})>"
