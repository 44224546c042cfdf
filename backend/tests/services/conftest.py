"""Service test fixtures: async DB, seeded groups, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - db_manager patched for code that bypasses get_db (readiness check)
    - Abuse limiters rebuilt per test so counters never leak between tests

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for store and
      route tests (row locks are no-ops there; the concurrency test uses a
      file database where writers really contend)
    - FixedClock shared by stores and scheduler: tests move time explicitly
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from relay.api.rate_limit import get_abuse_limiters
from relay.core.domain_types import VerificationStatus
from relay.db.base import Base
from relay.infrastructure.database import get_db, DatabaseSessionManager
import relay.infrastructure.database as db_module
import relay.models  # noqa: F401
from relay.models.group import Group
from relay.main import app

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Settable clock for stores and the scheduler."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


async def add_group(
    db: AsyncSession, name: str, service_area: str,
    status: VerificationStatus = VerificationStatus.VERIFIED,
) -> Group:
    group = Group(name=name, service_area=service_area, verification_status=status.value)
    db.add(group)
    await db.commit()
    return group


@pytest.fixture
async def groups(test_db):
    """Two verified groups in Minneapolis, one in St. Paul, one unverified."""
    return {
        "a": await add_group(test_db, "Northside Mutual Aid", "Minneapolis"),
        "b": await add_group(test_db, "Powderhorn Pantry", "Minneapolis"),
        "c": await add_group(test_db, "Frogtown Neighbors", "St. Paul"),
        "pending": await add_group(
            test_db, "Unvetted Collective", "Minneapolis", VerificationStatus.PENDING,
        ),
    }


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    get_abuse_limiters.cache_clear()

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    get_abuse_limiters.cache_clear()
    db_module.db_manager = original_manager
