"""
Registry models: flat records with a soft-delete ``active`` flag
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    cpf = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    cnh = Column(String, nullable=True)
    cnh_category = Column(String, nullable=True)
    admission_date = Column(Date, nullable=True)
    active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.name}')>"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    plate = Column(String, unique=True, index=True, nullable=False)
    brand = Column(String, nullable=True)
    model = Column(String, nullable=True)
    year = Column(Integer, nullable=True)
    seats = Column(Integer, nullable=True)
    description = Column(String, nullable=False, default="")
    # Odometer at registration, used as the first fuel reading baseline
    initial_mileage = Column(Float, nullable=True)
    active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.plate}')>"


class Line(Base):
    __tablename__ = "lines"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, default=True)

    routes = relationship("RouteDef", back_populates="line")


class RouteDef(Base):
    """A scheduled departure of a line"""

    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)
    line_id = Column(Integer, ForeignKey("lines.id"), nullable=False)
    origin = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    time = Column(String, nullable=False)  # HH:MM
    active = Column(Boolean, default=True)

    line = relationship("Line", back_populates="routes")


class Agency(Base):
    __tablename__ = "agencies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    manager_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    city = Column(String, nullable=False)
    address = Column(String, nullable=True)
    active = Column(Boolean, default=True)


class Client(Base):
    """Tourism client (PF = person, PJ = company)"""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False, default="PF")  # PF | PJ
    name = Column(String, nullable=False)
    trade_name = Column(String, nullable=True)  # PJ only
    tax_id = Column(String, nullable=False)  # CPF or CNPJ
    identity_doc = Column(String, nullable=True)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)

    zip_code = Column(String, nullable=True)
    address = Column(String, nullable=False, default="")
    number = Column(String, nullable=True)
    neighborhood = Column(String, nullable=True)
    city = Column(String, nullable=False, default="")
    state = Column(String, nullable=False, default="")

    active = Column(Boolean, default=True)


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    trade_name = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    category = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    active = Column(Boolean, default=True)


class ExpenseType(Base):
    __tablename__ = "expense_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, default=True)


class CommissionTarget:
    DRIVER = "DRIVER"
    AGENCY = "AGENCY"

    ALL = [DRIVER, AGENCY]


class CommissionRule(Base):
    __tablename__ = "commission_rules"

    id = Column(Integer, primary_key=True, index=True)
    target_type = Column(String, nullable=False)  # DRIVER | AGENCY
    target_id = Column(Integer, nullable=False, index=True)
    percentage = Column(Float, nullable=False, default=0.0)
    active = Column(Boolean, default=True)
