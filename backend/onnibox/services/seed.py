"""
Bootstrap data: first administrator and the demo registries
"""
import logging

from sqlalchemy.orm import Session

from ..config import settings
from ..models.user import User, UserRole
from ..models.registry import (
    Driver, Vehicle, Line, RouteDef, Agency, Client, ExpenseType,
    CommissionRule, CommissionTarget,
)
from ..utils.auth import get_password_hash

logger = logging.getLogger(__name__)

DEMO_DRIVERS = [
    {"name": "João Silva", "phone": "(11) 99999-9999", "cnh_category": "D"},
    {"name": "Pedro Santos", "phone": "(11) 98888-8888", "cnh_category": "E"},
]

DEMO_VEHICLES = [
    {"plate": "ABC-1234", "description": "Paradiso 1200", "brand": "Marcopolo", "seats": 46,
     "initial_mileage": 150000},
    {"plate": "XYZ-9876", "description": "Volare W9", "brand": "Volare", "seats": 28,
     "initial_mileage": 85000},
]

DEMO_LINES = {
    "São Paulo x Campinas": [
        ("São Paulo", "Campinas", "08:00"),
        ("Campinas", "São Paulo", "18:00"),
    ],
    "São Paulo x Santos": [
        ("São Paulo", "Santos", "10:00"),
    ],
}

DEMO_AGENCIES = [
    {"name": "Agência Central", "city": "São Paulo", "manager_name": "Roberto", "phone": "(11) 3333-3333"},
    {"name": "Rodoviária Campinas", "city": "Campinas", "manager_name": "Ana"},
]

DEMO_CLIENTS = [
    {"type": "PJ", "name": "Igreja Batista Central", "trade_name": "Min. Jovem",
     "tax_id": "12.345.678/0001-90", "phone": "(11) 91234-5678", "address": "Rua da Paz",
     "number": "100", "city": "São Paulo", "state": "SP"},
    {"type": "PF", "name": "Maria Oliveira", "tax_id": "123.456.789-00", "phone": "(19) 99876-5432",
     "address": "Av. Brasil", "number": "500", "city": "Campinas", "state": "SP"},
]

DEMO_EXPENSE_TYPES = [
    "Combustível (Rota)",
    "Pedágio (Rota)",
    "Alimentação",
    "Manutenção Emergencial",
    "Aluguel Garagem",
    "Energia Elétrica",
    "Internet/Telefonia",
    "Salários",
    "Material de Escritório",
]


def create_admin_user(db: Session) -> User | None:
    """Create the configured administrator when the users table is empty."""
    if db.query(User).count():
        return None
    admin = User(
        email=settings.ADMIN_EMAIL.lower(),
        name=settings.ADMIN_NAME,
        role=UserRole.ADMIN,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        is_active=True,
    )
    db.add(admin)
    db.commit()
    logger.info("[SEED] Administrator created: %s", admin.email)
    return admin


def seed_demo_data(db: Session) -> bool:
    """Load the demo registries once, only into an empty database."""
    if db.query(Driver).count() or db.query(Vehicle).count():
        return False

    drivers = [Driver(**d) for d in DEMO_DRIVERS]
    db.add_all(drivers)
    db.add_all(Vehicle(**v) for v in DEMO_VEHICLES)

    for line_name, schedules in DEMO_LINES.items():
        line = Line(name=line_name)
        db.add(line)
        db.flush()
        for origin, destination, time in schedules:
            db.add(RouteDef(line_id=line.id, origin=origin, destination=destination, time=time))

    agencies = [Agency(**a) for a in DEMO_AGENCIES]
    db.add_all(agencies)
    db.add_all(Client(**c) for c in DEMO_CLIENTS)
    db.add_all(ExpenseType(name=name) for name in DEMO_EXPENSE_TYPES)
    db.flush()

    db.add(CommissionRule(target_type=CommissionTarget.AGENCY, target_id=agencies[0].id, percentage=10))
    db.add(CommissionRule(target_type=CommissionTarget.DRIVER, target_id=drivers[0].id, percentage=5))
    db.commit()
    logger.info("[SEED] Demo registries loaded")
    return True
