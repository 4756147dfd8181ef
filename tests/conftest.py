"""
Shared fixtures.

Environment is set before any ``app`` import so that settings, the engine
and the password context pick up the test configuration.
"""

import os
import tempfile
from datetime import datetime, timezone
from typing import Optional

_TEST_DIR = tempfile.mkdtemp(prefix="hanzi-tests-")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEBUG"] = "false"

import httpx
import pytest
import pytest_asyncio

TEST_SECRET = "test-secret-key"


class FakeClock:
    """Callable clock whose time the test moves by hand."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens():
    from app.services.token_service import TokenService

    return TokenService(secret_key=TEST_SECRET)


@pytest_asyncio.fixture
async def db():
    """Fresh schema per test; the session is for direct setup and assertions."""
    from app.db.session import AsyncSessionLocal, Base, engine, init_db

    await init_db()
    async with AsyncSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def store(db):
    from app.services.session_store import SqlAlchemySessionStore

    return SqlAlchemySessionStore(db, timeout=5.0)


@pytest.fixture
def auth(store, tokens, clock):
    from app.services.auth_service import AuthService

    return AuthService(store, tokens, clock=clock)


@pytest_asyncio.fixture
async def client(db):
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
