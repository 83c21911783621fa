import os

# Set testing environment variable before the settings module is imported
os.environ["TESTING"] = "1"

from datetime import date, datetime, timezone
import pytest
from fastapi.testclient import TestClient

from clinic.core.config import Settings
from clinic.core.database import create_db_engine, create_session_factory, init_db
from clinic.core.security import Clock, SecretVerifier, UserRole
from clinic.main import create_app
from clinic.models import Doctor, Patient, User

ADMIN_EMAIL = "admin@clinic.com"
ADMIN_PASSWORD = "Admin123!"

class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, delta):
        self.current = self.current + delta

@pytest.fixture
def settings(tmp_path):
    return Settings(
        TESTING=True,
        TEST_DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret-key",
        BCRYPT_ROUNDS=4,
        ACCESS_TOKEN_EXPIRE_MINUTES=30,
        DEFAULT_ADMIN_EMAIL=ADMIN_EMAIL,
        DEFAULT_ADMIN_PASSWORD=ADMIN_PASSWORD,
        LOG_LEVEL="WARNING",
    )

@pytest.fixture
def app(settings):
    return create_app(settings)

@pytest.fixture
def client(app):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)

@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def frozen_clock():
    return FrozenClock(datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc))

# Test data
test_user_data = {
    "email": "test@clinic.com",
    "password": "TestPassword123",
    "first_name": "Test",
    "last_name": "User",
    "phone_number": "+39 070 1234567",
    "date_of_birth": "1990-05-17",
    "city": "Cagliari",
}

test_login_data = {
    "email": "test@clinic.com",
    "password": "TestPassword123",
}

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}

def register_patient(client, email: str = "patient@clinic.com", password: str = "Patient123") -> dict:
    """Register a patient through the API; returns the token response body."""
    data = dict(test_user_data, email=email, password=password)
    response = client.post("/api/v1/auth/register", json=data)
    assert response.status_code == 201, response.text
    return response.json()

def admin_token(client) -> str:
    client.post("/api/v1/setup/create-admin")
    response = client.post(
        "/api/v1/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]

def create_doctor(client, token: str, email: str = "house@clinic.com", license_number: str = "LIC-0001") -> dict:
    response = client.post(
        "/api/v1/doctors",
        json={
            "email": email,
            "password": "Doctor123",
            "first_name": "Gregory",
            "last_name": "House",
            "specialization": "Diagnostics",
            "license_number": license_number,
        },
        headers=auth_headers(token),
    )
    assert response.status_code == 201, response.text
    return response.json()

def login(client, email: str, password: str) -> str:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]

def seed_doctor_and_patient(db, verifier: SecretVerifier = None):
    """Insert one doctor and one patient directly; returns (doctor, patient)."""
    verifier = verifier or SecretVerifier(rounds=4)
    doctor_user = User(
        email="doc@clinic.com",
        password_hash=verifier.hash("Doctor123"),
        role=UserRole.DOCTOR,
        first_name="Meredith",
        last_name="Grey",
    )
    patient_user = User(
        email="pat@clinic.com",
        password_hash=verifier.hash("Patient123"),
        role=UserRole.PATIENT,
        first_name="Izzie",
        last_name="Stevens",
        date_of_birth=date(1992, 3, 4),
    )
    db.add_all([doctor_user, patient_user])
    db.flush()

    doctor = Doctor(user_id=doctor_user.id, specialization="Surgery", license_number="LIC-SEED")
    patient = Patient(user_id=patient_user.id, city="Seattle")
    db.add_all([doctor, patient])
    db.commit()
    return doctor, patient
