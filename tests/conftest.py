"""Test fixtures — a fresh in-memory database and signing secret per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (StaticPool keeps the one
   connection alive, so every session sees the same database). Tables are
   created from the models; nothing leaks between tests.
2. The app's get_db is overridden to hand out sessions on that engine.
3. The app's get_token_codec is overridden with a codec whose secret is
   unique to the test, so tokens from one test never validate in another.

Unlike a mocked identity, these fixtures run the real auth pipeline —
register, login and the Bearer-token gate are what is under test.
"""

import os
import uuid
from datetime import datetime, timezone

# Must be set before taskgate.config is imported.
os.environ["TASKGATE_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["TASKGATE_BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("TASKGATE_JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskgate.auth.jwt import TokenCodec, get_token_codec
from taskgate.auth.password import PasswordHasher
from taskgate.db.engine import get_db
from taskgate.db.models import Base
from taskgate.main import app


class FakeClock:
    """Settable clock for TokenCodec."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def codec():
    """Codec with a secret unique to this test."""
    return TokenCodec(secret=f"test-{uuid.uuid4().hex}")


@pytest_asyncio.fixture()
async def client(session_factory, codec):
    """HTTP client against the real app, with DB and codec overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codec] = lambda: codec

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register(client, username: str, email: str | None = None,
                   password: str = "Secret123") -> dict:
    """Register a user through the API and return the response body."""
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def alice(client):
    body = await register(client, "alice", "alice@x.com")
    return {**body, "headers": bearer(body["access_token"])}


@pytest_asyncio.fixture()
async def bob(client):
    body = await register(client, "bob", "bob@x.com", password="Hunter22x")
    return {**body, "headers": bearer(body["access_token"])}
