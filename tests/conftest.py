"""Shared test fixtures.

Tests run against an in-memory SQLite database built from the ORM metadata
and an in-process Redis double, so no external services are needed.
"""

from __future__ import annotations

import fnmatch
import time
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from irl.auth.jwt import create_access_token
from irl.config import get_settings
from irl.database import get_session
from irl.db import models  # noqa: F401  (registers tables)
from irl.db.base import Base
from irl.db.models import Interest, Person, User
from irl.email.service import get_email_service
from irl.gamification.seed import seed_gamification
from irl.main import create_app
from irl.persons.service import generate_display_id
from irl.redis_client import set_redis

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ---------------------------------------------------------------------------
# Redis double
# ---------------------------------------------------------------------------


class FakePipeline:
    """Queues commands and runs them in order on execute()."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._calls: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str) -> Any:
        def queue(*args: Any) -> FakePipeline:
            self._calls.append((name, args))
            return self

        return queue

    async def execute(self) -> list[Any]:
        results = [await getattr(self._redis, name)(*args) for name, args in self._calls]
        self._calls.clear()
        return results


class FakeRedis:
    """The subset of redis.asyncio.Redis the app uses: counters and sorted sets."""

    def __init__(self) -> None:
        self.strings: dict[str, int] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiry: dict[str, float] = {}

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def ping(self) -> bool:
        return True

    async def incr(self, key: str) -> int:
        self.strings[key] = self.strings.get(key, 0) + 1
        return self.strings[key]

    async def expire(self, key: str, seconds: int) -> bool:
        self.expiry[key] = time.time() + seconds
        return True

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update(mapping)
        return added

    async def zrem(self, key: str, *members: str) -> int:
        zset = self.zsets.get(key, {})
        return sum(1 for m in members if zset.pop(m, None) is not None)

    async def zcard(self, key: str) -> int:
        return len(self.zsets.get(key, {}))

    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> int:
        zset = self.zsets.get(key, {})
        stale = [m for m, score in zset.items() if min_score <= score <= max_score]
        for m in stale:
            del zset[m]
        return len(stale)

    async def keys(self, pattern: str = "*") -> list[str]:
        return [k for k in [*self.strings, *self.zsets] if fnmatch.fnmatch(k, pattern)]

    async def aclose(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's implicit transactions break SAVEPOINT; take over BEGIN ourselves.
    @event.listens_for(eng.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session for direct service calls and assertions."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Session with the standard achievements and levels seeded."""
    await seed_gamification(db_session)
    return db_session


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


async def create_user(
    db: AsyncSession,
    email: str = "alex@example.com",
    *,
    verified: bool = True,
    is_admin: bool = False,
) -> User:
    user = User(email=email, email_verified=verified, is_admin=is_admin)
    db.add(user)
    await db.commit()
    return user


async def create_person(db: AsyncSession, user: User, **fields: Any) -> Person:
    fields.setdefault("first_name", "Alex")
    fields.setdefault("display_id", generate_display_id())
    person = Person(user_id=user.id, **fields)
    db.add(person)
    await db.commit()
    return person


async def create_interests(db: AsyncSession, *names: str) -> list[Interest]:
    interests = [Interest(name=name) for name in names]
    db.add_all(interests)
    await db.commit()
    return interests


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest_asyncio.fixture
async def user(seeded_db: AsyncSession) -> User:
    return await create_user(seeded_db)


@pytest_asyncio.fixture
async def admin(seeded_db: AsyncSession) -> User:
    return await create_user(seeded_db, "admin@example.com", is_admin=True)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def mock_email_service() -> MagicMock:
    """Email service double; nothing leaves the process."""
    service = MagicMock()
    service.send = AsyncMock(return_value=True)
    service.send_verification_email = AsyncMock(return_value=True)
    service.send_magic_link_email = AsyncMock(return_value=True)
    service.send_invitation_email = AsyncMock(return_value=True)
    return service


@pytest_asyncio.fixture
async def client(
    seeded_db: AsyncSession,
    fake_redis: FakeRedis,
    mock_email_service: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the ASGI app; routes share the test's session."""
    get_settings.cache_clear()
    app = create_app()

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        yield seeded_db

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_email_service] = lambda: mock_email_service
    set_redis(fake_redis)  # type: ignore[arg-type]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    set_redis(None)
    app.dependency_overrides.clear()
