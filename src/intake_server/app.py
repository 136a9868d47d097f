"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the reference tables and builds the
    ``TurnOrchestrator`` with its HTTP model boundary once
  - CORS middleware
  - Exception handlers mapping ``IntakeError`` subclasses to 404/409/503
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``intake-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from intake_db.engine import dispose_engine, get_engine
from intake_db.repository import SessionRepository
from intake_engine.errors import (
    ConcurrentUpdateError,
    InvalidSessionStateError,
    SessionCreationError,
    SessionNotFoundError,
)
from intake_engine.http_boundary import HttpModelBoundary
from intake_engine.orchestrator import TurnOrchestrator
from intake_engine.prompt import PromptManager
from intake_engine.reference import load_tables

from intake_server.config import ServerSettings, load_settings
from intake_server.errors import (
    concurrent_update_handler,
    generic_error_handler,
    invalid_state_handler,
    session_creation_handler,
    session_not_found_handler,
)
from intake_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load the YAML reference tables
      2. Build the prompt manager, HTTP model boundary and orchestrator
      3. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Close the model boundary's HTTP client
      2. Dispose the database engine's connection pool
    """
    settings: ServerSettings = app.state.settings

    tables = load_tables(settings.tables_dir)
    prompts = PromptManager()
    boundary = HttpModelBoundary(
        settings.model_boundary_url,
        prompts=prompts,
        task_type=settings.model_boundary_task_type,
        timeout=settings.model_boundary_timeout,
    )
    orchestrator = TurnOrchestrator(
        boundary,
        prompts=prompts,
        repo=SessionRepository(check_version=settings.optimistic_locking),
        tables=tables,
    )
    logger.info(
        "Orchestrator ready (model boundary %s, optimistic locking %s)",
        settings.model_boundary_url,
        "on" if settings.optimistic_locking else "off",
    )

    app.state.tables = tables
    app.state.orchestrator = orchestrator

    yield

    # --- Shutdown ---
    await boundary.aclose()
    await dispose_engine()
    logger.info("Model boundary closed and database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Intake API Server",
        description="REST API for adaptive conversational job-role intake",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(SessionNotFoundError, session_not_found_handler)
    app.add_exception_handler(InvalidSessionStateError, invalid_state_handler)
    app.add_exception_handler(ConcurrentUpdateError, concurrent_update_handler)
    app.add_exception_handler(SessionCreationError, session_creation_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — verifies DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": "database unavailable"}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn intake_server.app:app)
# ------------------------------------------------------------------
app = create_app()


def cli() -> None:
    """Console-script entry point: ``intake-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "intake_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
