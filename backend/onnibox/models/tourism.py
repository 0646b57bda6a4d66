"""
Tourism / charter service model
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class TourismStatus:
    QUOTE = "QUOTE"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    ALL = [QUOTE, CONFIRMED, COMPLETED, CANCELED]


class PricingType:
    FIXED = "FIXED"  # city / table price
    CALCULATED = "CALCULATED"  # km + daily rate


class TourismService(Base):
    __tablename__ = "tourism_services"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    # Name snapshot in case the client is removed or for manual entry
    contractor_name = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    departure_date = Column(Date, nullable=False, index=True)
    return_date = Column(Date, nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)

    pricing_type = Column(String, default=PricingType.FIXED)
    price_per_km = Column(Float, nullable=True)
    total_km = Column(Float, nullable=True)
    daily_rate = Column(Float, nullable=True)
    days = Column(Integer, nullable=True)

    contract_value = Column(Float, default=0.0)
    # Trip expenses (tolls, parking, food...): [{type_id, amount, note}]
    expenses = Column(JSON, default=list)

    status = Column(String, default=TourismStatus.QUOTE)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    client = relationship("Client")

    def __repr__(self):
        return f"<TourismService(id={self.id}, destination='{self.destination}', status='{self.status}')>"
