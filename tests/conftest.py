import os
import tempfile
from datetime import datetime, timedelta

import pytest

# Configure the app before it is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="souqote-uploads-")
os.environ["LOG_FILE"] = os.path.join(tempfile.mkdtemp(prefix="souqote-logs-"), "test.log")
os.environ["ADMIN_SECRET"] = "test-admin-secret"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from souqote.categories.models import Category  # noqa: E402
from souqote.database import Base, get_db  # noqa: E402
from souqote.main import app  # noqa: E402


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_SECRET = "test-admin-secret"


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Fresh schema for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="client")
def client_fixture(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a user and return (token, user)."""

    def _register(email: str, user_type: str = "buyer", **extra):
        payload = {
            "email": email,
            "password": "secret123",
            "first_name": extra.pop("first_name", "Test"),
            "last_name": extra.pop("last_name", user_type.capitalize()),
            "phone": "+971500000000",
            "user_type": user_type,
        }
        if user_type == "admin":
            payload["admin_secret"] = ADMIN_SECRET
        payload.update(extra)
        response = client.post("/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["access_token"], body["user"]

    return _register


@pytest.fixture
def buyer(register):
    return register("buyer@example.com", "buyer", first_name="Aisha", last_name="Khan")


@pytest.fixture
def vendor(register, client):
    token, user = register("vendor@example.com", "vendor", first_name="Omar", last_name="Saleh")
    response = client.put("/users/me", json={"specialties": ["Construction"]}, headers=auth(token))
    assert response.status_code == 200, response.text
    return token, response.json()


@pytest.fixture
def admin(register):
    return register("admin@example.com", "admin", first_name="Site", last_name="Admin")


@pytest.fixture
def category(db_session):
    row = Category(name_en="Construction", name_ar="البناء", description_en="Building works")
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


def future(days: int = 7) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


def rfq_payload(**overrides) -> dict:
    payload = {
        "title": "Steel Reinforcement Bars",
        "description": "Supply of rebar for a villa project",
        "category": "Construction",
        "location": "Dubai",
        "budget_min": 1000,
        "budget_max": 5000,
        "urgency": "medium",
        "deadline": future(),
        "requirements": ["ISO certified", "  "],
        "items": [
            {"name": "Rebar 12mm", "quantity": 100, "unit": "KG"},
            {"name": "Rebar 16mm", "quantity": 50, "unit": "KG"},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def open_rfq(client, buyer, category):
    token, _ = buyer
    response = client.post("/rfqs/", json=rfq_payload(), headers=auth(token))
    assert response.status_code == 201, response.text
    return response.json()
