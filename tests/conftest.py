# tests/conftest.py
from __future__ import annotations

import os
from datetime import date

# Settings are read at import time; provide them before importing the app
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.auth import get_token_claims, require_user_id
from app.database import get_session
from app.main import app
from app.models.profile import Profile


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_profile(session):
    """Insert a profile; keyword arguments override the defaults."""

    def _make(user_id: str, **fields) -> Profile:
        fields.setdefault("first_name", user_id.title())
        fields.setdefault("gender", "female")
        profile = Profile(user_id=user_id, **fields)
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def login():
    """Authenticate subsequent requests as the given user id."""

    def _login(user_id: str, role: str = "authenticated") -> None:
        app.dependency_overrides[require_user_id] = lambda: user_id
        app.dependency_overrides[get_token_claims] = lambda: {"sub": user_id, "role": role}

    return _login


@pytest.fixture
def client(engine, login):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    login("user-a")
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def born_years_ago():
    """Birth date that makes someone exactly `years` old today."""

    def _born(years: int) -> date:
        return date(date.today().year - years, 1, 1)

    return _born
