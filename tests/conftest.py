from __future__ import annotations

import os

# env must be in place before the app modules read it at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENABLE_CREATE_ALL"] = "0"
os.environ["ENABLE_SCHEDULER"] = "0"
os.environ.setdefault("SECRET_KEY", "test-secret")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aiready.core.security import create_access_token, get_password_hash
from aiready.db.session import enable_sqlite_foreign_keys, get_db
from aiready.main import app
from aiready.models import Base
from aiready.models.ai_system import AISystem
from aiready.models.user import User
from aiready.services.ai_client import AIClient, ProviderChain, get_chain

API_KEY_VARS = (
    "DEEPSEEK_API_KEY",
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "GOOGLE_SEARCH_API_KEY",
    "GOOGLE_SEARCH_ENGINE_ID",
)


@pytest.fixture(autouse=True)
def _no_api_keys(monkeypatch: pytest.MonkeyPatch):
    for var in API_KEY_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    """Real sockets are off limits; MockTransport and the ASGI test transport are unaffected."""

    def offline(self, request):
        raise RuntimeError(f"External HTTP blocked by offline guard: {request.url}")

    monkeypatch.setattr(httpx.HTTPTransport, "handle_request", offline, raising=True)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    event.listen(eng, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def offline_chain():
    """No configured models and an empty search: every analysis ends on the static stage."""
    return ProviderChain(client=AIClient(providers={}), search=lambda query: [])


@pytest.fixture
def client(session_factory, offline_chain):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_chain] = lambda: offline_chain
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db, email: str, role: str = "user", password: str = "secret-pass") -> User:
    u = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=email.split("@")[0].title(),
        role=role,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def user(db):
    return _make_user(db, "user@example.com")


@pytest.fixture
def other_user(db):
    return _make_user(db, "other@example.com")


@pytest.fixture
def officer(db):
    return _make_user(db, "officer@example.com", role="compliance_officer")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", role="admin")


def _headers(u: User):
    return {"Authorization": f"Bearer {create_access_token({'sub': u.email})}"}


@pytest.fixture
def auth_headers(user):
    return _headers(user)


@pytest.fixture
def other_headers(other_user):
    return _headers(other_user)


@pytest.fixture
def officer_headers(officer):
    return _headers(officer)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def make_system(db):
    def _make(**kwargs) -> AISystem:
        n = db.query(AISystem).count() + 1
        data = {"system_id": f"AI-SYS-{n:04d}", "name": f"System {n}"}
        data.update(kwargs)
        s = AISystem(**data)
        db.add(s)
        db.commit()
        db.refresh(s)
        return s

    return _make
