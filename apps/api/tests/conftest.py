"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database built from the models.
Every test starts with empty tables; rows written by one test are deleted
before the next one runs.
"""
import pytest
import sys
import os
from uuid import uuid4

# Must be set before anything imports core.config / core.database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ["ANTHROPIC_API_KEY"] = ""

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from core.database import Base, SessionLocal, engine
from core.security import create_access_token
from models import Experiment, JournalEntry, LogEntry, Profile


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    db = SessionLocal()
    try:
        db.query(JournalEntry).delete()
        db.query(LogEntry).delete()
        db.query(Experiment).delete()
        db.query(Profile).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture
def db_session():
    """A plain session for arranging state and checking what endpoints wrote."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def auth_headers(user_id):
    """Bearer headers shaped like the auth provider's tokens"""
    token = create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers():
    token = create_access_token({"sub": str(uuid4())})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def experiment_payload():
    return {
        "title": "Morning vs evening sits",
        "hypothesis": "Morning sits leave me clearer for the rest of the day",
        "protocol": "Sit 20 minutes before breakfast; rate before and after",
        "metrics": [
            {"name": "State", "description": "Overall settledness"},
            {"name": "Clarity"},
            {"name": "Body Ease", "scale": [1, 5]},
        ],
        "duration_days": 14,
    }
