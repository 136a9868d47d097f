"""Process-wide async engine and session factory.

Both are built on first use and shared by every request; ``dispose_engine()``
closes the pool on shutdown.  Pool sizing comes from ``PG_POOL_SIZE`` and
``PG_MAX_OVERFLOW``; ``PG_ECHO=1`` logs SQL.
"""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from intake_db.config import get_async_url

_POOL_SIZE = int(os.getenv("PG_POOL_SIZE", "5"))
_MAX_OVERFLOW = int(os.getenv("PG_MAX_OVERFLOW", "10"))
_ECHO = os.getenv("PG_ECHO", "").lower() in ("1", "true", "yes")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            get_async_url(),
            echo=_ECHO,
            pool_size=_POOL_SIZE,
            max_overflow=_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine.

    ``expire_on_commit`` is off so rows stay readable after ``get_db``
    commits at the end of a request.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def dispose_engine() -> None:
    """Close the connection pool and forget the singletons."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
