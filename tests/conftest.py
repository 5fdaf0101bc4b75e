"""
ReadSync Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── engine: fresh in-memory SQLite database with the schema created
    ├── session: AsyncSession on that database (service-level tests)
    ├── identity: FakeIdentityProvider holding users and tokens in memory
    ├── client: HTTPX AsyncClient against create_app(identity=...) with the
    │           DB session dependency pointed at the test database
    └── auth_headers / other_auth_headers: bearer headers for two users
"""

import os

# Override settings for testing BEFORE any readsync imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["LOG_LEVEL"] = "WARNING"

import uuid
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from readsync.database import Base, get_db_session
from readsync.exceptions import IdentityProviderError
from readsync.main import create_app
from readsync.models.reading_record import ReadingRecord  # noqa: F401
from readsync.services.identity_base import AuthSession, AuthUser, IdentityProvider

TEST_DB_URL = "sqlite+aiosqlite://"  # in-memory


# ══════════════════════════════════════════════════════════════════════════
# Fake Identity Provider
# ══════════════════════════════════════════════════════════════════════════

class FakeIdentityProvider(IdentityProvider):
    """
    In-memory stand-in for Supabase Auth.

    Mirrors the provider's refusal messages and statuses so AuthService's
    translation logic is exercised exactly as in production.
    """

    def __init__(self):
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, AuthUser] = {}
        self.healthy = True
        self.down = False
        self.calls = []

    def _check_up(self) -> None:
        if self.down:
            raise IdentityProviderError(message="connection refused", status_code=None)

    def issue_token(self, user_id: str, email: str, name: Optional[str] = None) -> str:
        token = f"token-{uuid.uuid4().hex}"
        metadata = {"name": name} if name else {}
        self.tokens[token] = AuthUser(id=user_id, email=email, user_metadata=metadata)
        return token

    async def sign_up(self, email, password, metadata=None):
        self.calls.append(("sign_up", email))
        self._check_up()
        if email in self.accounts:
            raise IdentityProviderError(message="User already registered", status_code=422)
        if "@" not in email:
            raise IdentityProviderError(message="Unable to validate email address: invalid format", status_code=400)
        user = AuthUser(id=str(uuid.uuid4()), email=email, user_metadata=metadata or {})
        self.accounts[email] = {"password": password, "user": user}
        return user

    async def sign_in_with_password(self, email, password):
        self.calls.append(("sign_in_with_password", email))
        self._check_up()
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise IdentityProviderError(message="Invalid login credentials", status_code=400)
        user = account["user"]
        access_token = self.issue_token(user.id, email, user.user_metadata.get("name"))
        return AuthSession(access_token=access_token, refresh_token="refresh-" + user.id, user=user)

    async def get_user(self, token):
        self.calls.append(("get_user", token))
        self._check_up()
        return self.tokens.get(token)

    async def health_check(self):
        return self.healthy


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    A fresh in-memory database per test.

    StaticPool keeps the single connection alive, otherwise every checkout
    would open a new, empty in-memory database.
    """
    test_engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for driving failure paths a real database won't produce.

    Usage:
        mock_db_session.execute = AsyncMock(side_effect=OperationalError(...))
    """
    db = AsyncMock()
    db.execute = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.close = AsyncMock()
    db.add = MagicMock()
    return db


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def app(identity, session_factory):
    application = create_app(identity=identity)

    async def override_session():
        async with session_factory() as s:
            yield s

    application.dependency_overrides[get_db_session] = override_session
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app (no server).

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers(identity):
    token = identity.issue_token("user-a", "alice@example.com", "Alice")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(identity):
    token = identity.issue_token("user-b", "bob@example.com", "Bob")
    return {"Authorization": f"Bearer {token}"}
