import os, sys, pathlib

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Settings are read at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["ADMIN_RATE_LIMIT_PER_MINUTE"] = "100000"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rental_api.core.security import create_token, hash_password
from rental_api.db.session import Base, get_db
from rental_api.main import app
from rental_api.models import Location, User, Vehicle, VehicleSpecification
from rental_api.models.enums import FuelType, Transmission, UserRole, VehicleCategory

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "password123"

# Far enough ahead that "booking date in the past" never triggers
JULY_1 = datetime(2030, 7, 1, 10, 0)
JULY_3 = datetime(2030, 7, 3, 10, 0)
JULY_5 = datetime(2030, 7, 5, 10, 0)
JULY_7 = datetime(2030, 7, 7, 10, 0)


@pytest.fixture
def db():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email, role=UserRole.USER, firstname="Test"):
    user = User(
        firstname=firstname,
        lastname="User",
        email=email,
        password=hash_password(PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_header(user):
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest.fixture
def user(db):
    return make_user(db, "alice@example.com")


@pytest.fixture
def other_user(db):
    return make_user(db, "bob@example.com", firstname="Bob")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=UserRole.ADMIN, firstname="Admin")


@pytest.fixture
def agent(db):
    return make_user(db, "agent@example.com", role=UserRole.SUPPORT_AGENT, firstname="Agent")


@pytest.fixture
def user_headers(user):
    return auth_header(user)


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)


@pytest.fixture
def location(db):
    loc = Location(name="Downtown", address="1 Main St", contact_phone="555-0100")
    db.add(loc)
    db.commit()
    db.refresh(loc)
    return loc


@pytest.fixture
def vehicle(db, location):
    """A 150.00/day sedan, available at the downtown location."""
    spec = VehicleSpecification(
        manufacturer="Toyota",
        model="Corolla",
        year=2024,
        fuel_type=FuelType.PETROL,
        transmission=Transmission.AUTOMATIC,
        seating_capacity=5,
        vehicle_category=VehicleCategory.FOUR_WHEELER,
    )
    db.add(spec)
    db.flush()
    v = Vehicle(
        vehicleSpec_id=spec.vehicleSpec_id,
        location_id=location.location_id,
        rental_rate=Decimal("150.00"),
        license_plate="ABC-123",
    )
    db.add(v)
    db.commit()
    db.refresh(v)
    return v
