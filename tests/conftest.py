"""
DailyThree — Shared pytest fixtures.
"""

from __future__ import annotations

import os
import secrets
from typing import Callable, Dict, Generator, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ─── Environment setup (before any app imports) ───────────────────────────────

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", secrets.token_hex(32))
os.environ["ENVIRONMENT"] = "test"
# keep hashing fast; production uses the default work factor
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.pop("GEMINI_API_KEY", None)

# ─── App imports (after env is set) ───────────────────────────────────────────

from app.config import get_settings  # noqa: E402
from app.database import get_db, init_db  # noqa: E402
from app.services.notifications import get_reset_delivery  # noqa: E402

# ─────────────────────────────────────────────────────────────────────────────
# DATABASE FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


def _make_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_pragmas(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    init_db(bind=engine)
    return engine


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """In-memory SQLite session — fresh for every test function."""
    engine = _make_engine()
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def settings():
    return get_settings()


# ─────────────────────────────────────────────────────────────────────────────
# RESET LINK CAPTURE
# ─────────────────────────────────────────────────────────────────────────────


class CapturingResetDelivery:
    """Records every reset link instead of sending it."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    def send_reset_link(self, email: str, reset_url: str) -> None:
        self.sent.append((email, reset_url))

    @property
    def last_token(self) -> str:
        assert self.sent, "no reset link was delivered"
        return self.sent[-1][1].rsplit("/", 1)[-1]


@pytest.fixture
def reset_outbox() -> CapturingResetDelivery:
    return CapturingResetDelivery()


# ─────────────────────────────────────────────────────────────────────────────
# FASTAPI CLIENT FIXTURE
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(scope="function")
def client(
    db_session: Session, reset_outbox: CapturingResetDelivery
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with overridden DB and reset-delivery dependencies."""
    from app.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reset_delivery] = lambda: reset_outbox

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# ─────────────────────────────────────────────────────────────────────────────
# USER HELPERS
# ─────────────────────────────────────────────────────────────────────────────


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client: TestClient) -> Callable[..., Dict]:
    """Register a user through the API and return the response body."""

    def _register(
        email: str = "alice@x.com", password: str = "longpass1", username=None
    ) -> Dict:
        payload = {"email": email, "password": password}
        if username is not None:
            payload["username"] = username
        resp = client.post("/api/v1/auth/register", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _register


@pytest.fixture
def alice(register) -> Dict[str, str]:
    """Auth headers for a freshly registered user."""
    return auth_headers(register("alice@x.com", "longpass1", "alice")["token"])


@pytest.fixture
def bob(register) -> Dict[str, str]:
    return auth_headers(register("bob@x.com", "longpass2", "bob")["token"])
