"""
Shared pytest fixtures

Tests run against an in-memory SQLite database; the environment is set
before the application is imported so the engine binds to it.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["BUSINESS_TIMEZONE"] = "UTC"
os.environ["DAY_END_HOUR"] = "0"
os.environ["DAY_END_MINUTE"] = "0"

import pytest
import jwt
from uuid import uuid4
from fastapi.testclient import TestClient

from app.core.config import settings
from app.database.database import Base, engine, SessionLocal
from app.main import app


@pytest.fixture
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(setup_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(setup_database):
    return TestClient(app)


def make_token(user_id, role: str) -> str:
    return jwt.encode(
        {"sub": str(user_id), "role": role},
        settings.APP_SECRET_STRING,
        algorithm=settings.ALGORITHM
    )


@pytest.fixture
def staff_id():
    return uuid4()


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def staff_headers(staff_id):
    return {"Authorization": f"Bearer {make_token(staff_id, 'staff')}"}


@pytest.fixture
def owner_headers(owner_id):
    return {"Authorization": f"Bearer {make_token(owner_id, 'owner')}"}


@pytest.fixture
def manager_headers():
    return {"Authorization": f"Bearer {make_token(uuid4(), 'manager')}"}
