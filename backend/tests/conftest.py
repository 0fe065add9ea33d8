"""Test fixtures: in-memory SQLite, dependency override, seeded archetypes and users."""
from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Dict

# Must be set before waterlog.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from waterlog.auth import create_access_token, get_password_hash
from waterlog.database import Base, get_db
from waterlog.main import app
from waterlog.models import PlantArchetype, Room, User
from waterlog.seed.seed_data import seed_archetypes
from waterlog.services.rooms import get_graveyard_room

TEST_PASSWORD = "Sup3rSecret!"

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def parse_ts(value: str) -> datetime:
    """Parse an API timestamp into an aware UTC datetime."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup and assertions."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def archetypes(db_session) -> Dict[str, PlantArchetype]:
    seed_archetypes(db_session)
    db_session.commit()
    return {a.name: a for a in db_session.query(PlantArchetype).all()}


def _make_user(db_session, email: str, settings=None) -> User:
    user = User(email=email, password_hash=get_password_hash(TEST_PASSWORD), settings=settings)
    db_session.add(user)
    db_session.flush()
    get_graveyard_room(db_session, user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user(db_session) -> User:
    return _make_user(db_session, "gardener@example.com")


@pytest.fixture
def other_user(db_session) -> User:
    return _make_user(db_session, "neighbour@example.com")


@pytest.fixture
def auth_headers(user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def other_headers(other_user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user)}"}


@pytest.fixture
def room(db_session, user) -> Room:
    room = Room(user_id=user.id, name="Living Room", sort_order=0)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room
