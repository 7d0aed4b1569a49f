"""Shared pytest fixtures configured to use SQLite in-memory for unit tests."""

import logging
import os
from uuid import uuid4

# must be set before the application modules are imported
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("COACHNOTES_SKIP_LIFESPAN_DB", "1")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coachnotes.config import Settings  # noqa: E402
from coachnotes.core.models import Base, CoachingSession  # noqa: E402
from coachnotes.core.redis_client import RedisClient  # noqa: E402
from coachnotes.core.schemas.actor import Actor, UserRole  # noqa: E402
from coachnotes.core.services.note_service import NoteService  # noqa: E402
from coachnotes.database import get_db_session  # noqa: E402
from coachnotes.main import app  # noqa: E402
from coachnotes.security.encryption import EncryptionCodec  # noqa: E402
from coachnotes.security.jwt import create_access_token  # noqa: E402

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


class FakeRedisBackend:
    """In-memory stand-in for the redis.asyncio client used by RedisClient."""

    def __init__(self):
        self.storage = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.storage.get(key)

    async def set(self, key, value):
        self._check()
        self.storage[key] = value
        return True

    async def setex(self, key, expire, value):
        self._check()
        self.storage[key] = value
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.storage.pop(key, None) is not None:
                removed += 1
        return removed

    async def incr(self, key):
        self._check()
        value = int(self.storage.get(key, 0)) + 1
        self.storage[key] = str(value)
        return value

    async def aclose(self):
        pass


@pytest.fixture
def test_settings():
    """Settings for tests using SQLite in-memory DB."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key",
        debug=True,
        log_to_file=False,
        search_index_key="test-index-key",
    )


@pytest.fixture
async def test_engine(test_settings):
    """SQLite in-memory engine with a fresh schema per test."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )

    # Ensure SQLite enforces foreign key constraints (required for CASCADE)
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    """Database session per test."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def codec():
    return EncryptionCodec([EncryptionCodec.generate_key()], index_key="test-index-key")


@pytest.fixture
def redis_backend():
    return FakeRedisBackend()


@pytest.fixture
def redis_client(test_settings, redis_backend):
    """RedisClient wired to the in-memory backend."""
    client = RedisClient(test_settings)
    client.redis = redis_backend
    return client


@pytest.fixture
def note_service(test_session, codec, redis_client, test_settings):
    return NoteService(test_session, codec, redis_client, test_settings)


@pytest.fixture
async def make_service(session_factory, codec, redis_client, test_settings):
    """Build services on separate sessions, like separate requests."""
    sessions = []

    def _make() -> NoteService:
        session = session_factory()
        sessions.append(session)
        return NoteService(session, codec, redis_client, test_settings)

    yield _make

    for session in sessions:
        await session.close()


# Actors
def _actor(role: UserRole) -> Actor:
    return Actor(id=uuid4(), role=role, ip_address="10.0.0.1", user_agent="pytest")


@pytest.fixture
def coach():
    return _actor(UserRole.COACH)


@pytest.fixture
def other_coach():
    return _actor(UserRole.COACH)


@pytest.fixture
def supervisor():
    return _actor(UserRole.SUPERVISOR)


@pytest.fixture
def admin():
    return _actor(UserRole.ADMIN)


@pytest.fixture
def client_actor():
    return _actor(UserRole.CLIENT)


@pytest.fixture
async def coaching_session(test_session, coach, client_actor):
    """A session between the coach and the client."""
    cs = CoachingSession(coach_id=coach.id, client_id=client_actor.id)
    test_session.add(cs)
    await test_session.commit()
    return cs


@pytest.fixture
async def other_session(test_session, other_coach):
    cs = CoachingSession(coach_id=other_coach.id, client_id=uuid4())
    test_session.add(cs)
    await test_session.commit()
    return cs


# HTTP
def auth_headers_for(actor: Actor) -> dict:
    token = create_access_token({"sub": str(actor.id), "role": actor.role.value})
    return {"Authorization": f"Bearer {token}", "User-Agent": "pytest-http"}


@pytest.fixture
def auth_headers():
    """Bearer headers for an actor."""
    return auth_headers_for


@pytest.fixture
def test_app(session_factory, codec, redis_client):
    """Application with test DB, codec and cache."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_get_db
    app.state.codec = codec
    app.state.redis = redis_client
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app):
    """Async test client running on the test's event loop."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac
