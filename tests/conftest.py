"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_planner.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-sessions")
os.environ.setdefault("MOBILE_TOKEN_SECRET", "test-mobile-secret")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable, Dict, List
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from planner.main import app
from planner.api.routes.auth import limiter
from planner.db.session import Base, get_session
from planner.core.security import hash_password, create_access_token, create_mobile_token
from planner.db.models import Event, PrivacyLevel, User
from planner.db.repositories.users import create_user
from planner.db.repositories.friends import create_friendship
from planner.db.repositories.attendees import add_host_attendee
from planner.storage.object_store import get_object_store

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

PASSWORD = "Test123!@#"


class FakeObjectStore:
    """In-memory stand-in for the Cloudinary-backed store."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def upload(self, data: bytes, key: str, content_type: str) -> str:
        self.objects[key] = data
        return f"https://cdn.test/{key}"

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)


class FakeCache:
    """In-memory replacement for the Redis client."""

    def __init__(self):
        self.store = {}

    async def set(self, key, value, expire=300):
        self.store[key] = value
        return True

    async def exists(self, key):
        return key in self.store


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh schema and session for each test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, object_store: FakeObjectStore) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client bound to the app, sharing the test session.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_object_store] = lambda: object_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def alice(db_session: AsyncSession) -> User:
    return await create_user(
        db_session,
        username="alice",
        email="alice@example.com",
        name="Alice Host",
        hashed_password=hash_password(PASSWORD),
    )


@pytest_asyncio.fixture
async def bob(db_session: AsyncSession) -> User:
    return await create_user(db_session, username="bob", email="bob@example.com", name="Bob Guest")


@pytest_asyncio.fixture
async def carol(db_session: AsyncSession) -> User:
    return await create_user(db_session, username="carol", email="carol@example.com", name="Carol Stranger")


def session_headers(user: User) -> Dict[str, str]:
    """Authorization header carrying a session token for ``user``."""
    token = create_access_token({"sub": str(user.id), "username": user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    return session_headers


@pytest.fixture
def mobile_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = create_mobile_token(str(user.id), {"id": str(user.id), "username": user.username})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Factory inserting an event hosted by ``host`` with the host attending."""
    async def _make_event(
        host: User,
        privacy_level: PrivacyLevel = PrivacyLevel.PUBLIC,
        name: str = "Board games",
        days_ahead: int = 7,
    ) -> Event:
        event = Event(
            name=name,
            location="Community hall",
            date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
            time="18:30",
            duration=120,
            privacy_level=privacy_level,
            host_id=host.id,
        )
        db_session.add(event)
        await db_session.flush()
        await add_host_attendee(db_session, host.id, event.id)
        await db_session.commit()
        return event
    return _make_event


@pytest.fixture
def befriend(db_session: AsyncSession):
    async def _befriend(a: User, b: User) -> None:
        await create_friendship(db_session, a.id, b.id)
        await db_session.commit()
    return _befriend


@pytest.fixture(autouse=True)
def fake_cache(monkeypatch) -> FakeCache:
    """Keep token revocation in memory instead of Redis."""
    fake = FakeCache()
    from planner.core import security
    monkeypatch.setattr(security, "cache", fake)
    return fake


@pytest.fixture(autouse=True)
def published(monkeypatch) -> List[dict]:
    """Capture broker messages instead of talking to RabbitMQ."""
    messages = []

    async def fake_publish(routing_key: str, payload: dict):
        messages.append({"routing_key": routing_key, **payload})

    from planner.events import publisher
    monkeypatch.setattr(publisher, "publish_event", fake_publish)
    return messages


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Replace bcrypt with a cheap reversible scheme so tests stay fast.
    """
    class MockPasswordContext:
        def hash(self, password: str) -> str:
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            return hashed == f"$2b$12$mockedhash{plain}"

    from planner.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """Disable rate limiting for all tests."""
    monkeypatch.setattr(limiter, "enabled", False)
