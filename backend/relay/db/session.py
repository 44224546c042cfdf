"""Async Session Factory: DB sessions for direct usage outside FastAPI.

Invariants:
    - Meant for scripts and test fixtures; the app uses DatabaseSessionManager

Design Decisions:
    - SQLite file databases get a busy timeout so concurrent writers wait
      for the lock instead of failing immediately
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker


def create_session_factory(
    database_url: str,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for the given database URL."""
    connect_args = {"timeout": 30} if database_url.startswith("sqlite") else {}
    engine = create_async_engine(
        database_url, echo=False, connect_args=connect_args,
    )
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
