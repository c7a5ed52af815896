"""Pytest fixtures."""

import os
from datetime import datetime, timezone

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("WEEK_TIMEZONE", "UTC")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from hucares.core.deps import get_now
from hucares.db.base import Base
from hucares.db.session import build_engine, get_db
from hucares.main import app
from hucares.models import CheckIn, Group, GroupMembership, User  # noqa: F401 - register for create_all

TEST_DATABASE_URL = "sqlite:///./test.db"

# Wednesday; its week bucket is Monday 2024-06-03
DEFAULT_NOW = datetime(2024, 6, 5, 10, 0, tzinfo=timezone.utc)

engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def setup_db():
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    """Mutable clock; set clock["now"] to move time for the API."""
    return {"now": DEFAULT_NOW}


@pytest.fixture
def client(setup_db, clock):
    """Test client with overridden DB and clock."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock["now"]
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db(setup_db):
    """Session for service-level tests."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, username, password="Secret123", email=None):
    """Register a user and return a bearer header for them."""
    payload = {"username": username, "password": password}
    if email:
        payload["email"] = email
    r = client.post("/auth/register", json=payload)
    assert r.status_code == 201, r.json()
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def create_group(client, headers, name="Tuesday Crew", **extra):
    r = client.post("/groups", headers=headers, json={"name": name, **extra})
    assert r.status_code == 201, r.json()
    return r.json()["group"]


def join_group(client, headers, access_code):
    return client.post("/groups/join", headers=headers, json={"access_code": access_code})
