import os

# Must be set before onnibox.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["AUTO_BACKUP_ON_CLOSE"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from onnibox.database import get_db, init_db
from onnibox.main import app
from onnibox.models import (
    User, UserRole, Driver, Vehicle, Line, RouteDef, Agency, Client,
    ExpenseType, Supplier, CommissionRule, CommissionTarget,
)
from onnibox.utils.auth import create_access_token, get_password_hash

API = "/api/v1"
PASSWORD = "s3cret-pass"


@pytest.fixture(scope="session")
def password_hash() -> str:
    return get_password_hash(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def users(db_session, password_hash) -> dict:
    """One active user per role"""
    created = {}
    for role in UserRole.ALL:
        user = User(
            email=f"{role.lower()}@onnibox.com.br",
            name=f"{role.title()} User",
            role=role,
            hashed_password=password_hash,
            is_active=True,
        )
        db_session.add(user)
        created[role] = user
    db_session.commit()
    return created


@pytest.fixture
def headers(users) -> dict:
    """Bearer headers keyed by role"""
    return {
        role: {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
        for role, user in users.items()
    }


@pytest.fixture
def registry(db_session):
    """Minimal registries: one line with a schedule, a driver, a vehicle and an agency at 10 %"""
    line = Line(name="São Paulo x Campinas")
    db_session.add(line)
    db_session.flush()
    route = RouteDef(line_id=line.id, origin="São Paulo", destination="Campinas", time="08:00")
    other_line = Line(name="São Paulo x Santos")
    db_session.add_all([route, other_line])
    db_session.flush()
    other_route = RouteDef(line_id=other_line.id, origin="São Paulo", destination="Santos", time="10:00")

    driver = Driver(name="João Silva", cnh_category="D")
    vehicle = Vehicle(plate="ABC-1234", description="Paradiso 1200", initial_mileage=1000)
    second_vehicle = Vehicle(plate="XYZ-9876", description="Volare W9", initial_mileage=500)
    agency = Agency(name="Agência Central", city="São Paulo")
    plain_agency = Agency(name="Rodoviária Campinas", city="Campinas")
    client = Client(type="PJ", name="Igreja Batista Central", tax_id="12.345.678/0001-90", phone="(11) 91234-5678")
    expense_type = ExpenseType(name="Pedágio (Rota)")
    supplier = Supplier(name="Posto Central")
    db_session.add_all([
        other_route, driver, vehicle, second_vehicle, agency, plain_agency, client, expense_type, supplier,
    ])
    db_session.flush()
    db_session.add(CommissionRule(target_type=CommissionTarget.AGENCY, target_id=agency.id, percentage=10))
    db_session.commit()

    return SimpleNamespace(
        line_id=line.id,
        other_line_id=other_line.id,
        route_id=route.id,
        other_route_id=other_route.id,
        driver_id=driver.id,
        vehicle_id=vehicle.id,
        second_vehicle_id=second_vehicle.id,
        agency_id=agency.id,
        plain_agency_id=plain_agency.id,
        client_id=client.id,
        expense_type_id=expense_type.id,
        supplier_id=supplier.id,
    )


@pytest.fixture
def yesterday() -> date:
    return date.today() - timedelta(days=1)


@pytest.fixture
def route_cash_payload(registry, yesterday):
    def build(**overrides):
        payload = {
            "date": yesterday.isoformat(),
            "route_id": registry.route_id,
            "driver_id": registry.driver_id,
            "vehicle_id": registry.vehicle_id,
            "passengers": 30,
            "revenue_informed": 1000.0,
            "expenses": [{"type_id": registry.expense_type_id, "amount": 50.0, "note": "pedágio"}],
            "cash_handed": 940.0,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def agency_cash_payload(registry, yesterday):
    def build(**overrides):
        payload = {
            "date": yesterday.isoformat(),
            "agency_id": registry.agency_id,
            "value_informed": 2000.0,
            "value_received": 1750.0,
            "expenses": [{"type_id": registry.expense_type_id, "amount": 50.0}],
        }
        payload.update(overrides)
        return payload
    return build
