"""
Database models
"""
from .user import User, UserRole
from .registry import (
    Driver, Vehicle, Line, RouteDef, Agency, Client, Supplier,
    ExpenseType, CommissionRule, CommissionTarget,
)
from .cash import RouteCash, AgencyCash, DailyClose, CashStatus
from .fuel import FuelEntry
from .expense import GeneralExpense, PaymentMethod, ExpenseStatus
from .tourism import TourismService, TourismStatus, PricingType
from .ledger import DriverLedgerEntry, LedgerType, LEDGER_CATEGORIES
from .audit import AuditLog, AuditAction

__all__ = [
    "User", "UserRole",
    "Driver", "Vehicle", "Line", "RouteDef", "Agency", "Client", "Supplier",
    "ExpenseType", "CommissionRule", "CommissionTarget",
    "RouteCash", "AgencyCash", "DailyClose", "CashStatus",
    "FuelEntry",
    "GeneralExpense", "PaymentMethod", "ExpenseStatus",
    "TourismService", "TourismStatus", "PricingType",
    "DriverLedgerEntry", "LedgerType", "LEDGER_CATEGORIES",
    "AuditLog", "AuditAction",
]
