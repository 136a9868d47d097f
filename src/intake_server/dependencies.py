"""FastAPI dependency injection — DB sessions, orchestrator, tables, identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on
error; the orchestrator and repository only ever ``flush()``.
"""

from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.engine import get_session_factory
from intake_engine.orchestrator import TurnOrchestrator
from intake_engine.reference import ReferenceTables


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_orchestrator(request: Request) -> TurnOrchestrator:
    return request.app.state.orchestrator


def get_tables(request: Request) -> ReferenceTables:
    return request.app.state.tables


async def get_user_id(
    x_user_id: str | None = Header(None, alias="X-User-ID"),
) -> str:
    """Caller identity from the ``X-User-ID`` header; 401 when absent."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")
    return x_user_id
